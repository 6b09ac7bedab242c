from botocore.exceptions import ClientError

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"
TRANSACTION_CANCELED = "TransactionCanceledException"


def error_code(err: ClientError) -> str:
    return err.response.get("Error", {}).get("Code", "")


def error_message(err: ClientError) -> str:
    return err.response.get("Error", {}).get("Message", str(err))


def is_conditional_failure(err: ClientError) -> bool:
    return error_code(err) == CONDITIONAL_CHECK_FAILED


def is_transaction_cancelled(err: ClientError) -> bool:
    return error_code(err) == TRANSACTION_CANCELED

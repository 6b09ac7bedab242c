DEFAULT_PLATFORM_FEE_RATE = 5
DEFAULT_CANCELLATION_FEE_RATE = 10
DEFAULT_MAX_BOOKINGS = 10000

MAX_REVIEW_COMMENT_LENGTH = 500
MIN_REVIEW_RATING = 1
MAX_REVIEW_RATING = 5

# post-start cancellations forfeit half of the total cost
LATE_CANCELLATION_DIVISOR = 2

from dataclasses import dataclass


@dataclass
class IdentityStatus:
    principal: str
    verified: bool = False

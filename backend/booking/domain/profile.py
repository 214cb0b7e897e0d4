from dataclasses import dataclass


@dataclass(frozen=True)
class ClientProfile:
    email: str
    name: str
    phone: str = ""

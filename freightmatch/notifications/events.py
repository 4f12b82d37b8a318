"""Typed outbound events produced by request handlers."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PushEvent:
    device_tokens: tuple[str, ...]
    title: str
    body: str
    url: str | None = None


@dataclass(frozen=True)
class SmsEvent:
    phone_number: str
    message: str


@dataclass(frozen=True)
class BulkSmsEvent:
    phone_numbers: tuple[str, ...]
    message: str


@dataclass(frozen=True)
class EmailEvent:
    subject: str
    html: str
    to: str | None = None  # None = platform admin address


OutboundEvent = PushEvent | SmsEvent | BulkSmsEvent | EmailEvent


@dataclass
class DispatchReport:
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, other: "DispatchReport") -> None:
        self.sent += other.sent
        self.failed += other.failed
        self.errors.extend(other.errors)

"""Scuba response and request models."""

from dataclasses import dataclass
from enum import Enum

from scubaclient.errors import MalformedResponseError


class MetricsClass(str, Enum):
    """Namespace of the resource a metrics record describes."""

    ACCOUNT = "account"
    BUCKET = "bucket"
    SERVICE = "service"


@dataclass(frozen=True)
class ScubaMetrics:
    objects_total: int
    bytes_total: int
    metrics_class: str
    resource_name: str
    id: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ScubaMetrics":
        """Build from a decoded response body (camelCase keys)."""
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected a JSON object, got {type(data).__name__}")
        try:
            raw_id = data.get("id")
            return cls(
                objects_total=_whole_number(data["objectsTotal"]),
                bytes_total=_whole_number(data["bytesTotal"]),
                metrics_class=data["metricsClass"],
                resource_name=data["resourceName"],
                id=_whole_number(raw_id) if raw_id is not None else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"Invalid metrics payload: {e!r}") from e

    def to_dict(self) -> dict:
        body = {
            "objectsTotal": self.objects_total,
            "bytesTotal": self.bytes_total,
            "metricsClass": self.metrics_class,
            "resourceName": self.resource_name,
        }
        if self.id is not None:
            body["id"] = self.id
        return body


def _whole_number(value) -> int:
    """Counts must be integral; fractional values are not truncated."""
    if isinstance(value, bool):
        raise TypeError(f"Expected a count, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Expected a whole number, got {value!r}")
    return int(value)

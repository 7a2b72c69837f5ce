"""
Settlement events.

Every state-changing operation emits exactly one event into the host's
EventLog. Events are immutable; event_id is the SHA-256 of the event's
RFC 8785 canonical form, so two logs holding the same events agree on
their identities.

Large integers are carried as decimal strings in to_dict() because JCS
cannot represent integers above 2**53 exactly.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Type

from nftsettle.core.canonical import canonical_hash, canonicalize
from nftsettle.core.models import SaleType


class EventType:
    ORDER_SETTLED      = "order_settled"
    REWARD_CLAIMED     = "reward_claimed"
    CONTROLLER_CHANGED = "controller_changed"


@dataclass(frozen=True)
class OrderSettled:
    maker_order_hash: bytes
    deal_order_hash:  bytes
    sale_type:        SaleType
    maker:            str
    taker:            str
    deal_amount:      int
    total_fee:        int
    processed:        bool

    event_type = EventType.ORDER_SETTLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type":       self.event_type,
            "maker_order_hash": "0x" + self.maker_order_hash.hex(),
            "deal_order_hash":  "0x" + self.deal_order_hash.hex(),
            "sale_type":        int(self.sale_type),
            "maker":            self.maker,
            "taker":            self.taker,
            "deal_amount":      str(self.deal_amount),
            "total_fee":        str(self.total_fee),
            "processed":        self.processed,
        }

    @property
    def event_id(self) -> str:
        return canonical_hash(self.to_dict())


@dataclass(frozen=True)
class RewardClaimed:
    claimant: str
    amount:   int

    event_type = EventType.REWARD_CLAIMED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "claimant":   self.claimant,
            "amount":     str(self.amount),
        }

    @property
    def event_id(self) -> str:
        return canonical_hash(self.to_dict())


@dataclass(frozen=True)
class ControllerChanged:
    previous: str
    current:  str

    event_type = EventType.CONTROLLER_CHANGED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "previous":   self.previous,
            "current":    self.current,
        }

    @property
    def event_id(self) -> str:
        return canonical_hash(self.to_dict())


class EventLog:
    """
    Append-only in-memory event log.

    Participates in host snapshots: an operation that fails after emitting
    leaves no event behind.
    """

    def __init__(self) -> None:
        self._events: List[Any] = []

    def emit(self, event: Any) -> None:
        self._events.append(event)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def of_type(self, cls: Type) -> List[Any]:
        return [e for e in self._events if isinstance(e, cls)]

    def last(self, cls: Optional[Type] = None) -> Optional[Any]:
        events = self.of_type(cls) if cls else self._events
        return events[-1] if events else None

    def to_jsonl(self) -> str:
        lines = [canonicalize(e.to_dict()).decode("utf-8") for e in self._events]
        return "\n".join(lines) + ("\n" if lines else "")

    # ── Snapshot ──────────────────────────────────────────────

    def snapshot(self) -> int:
        return len(self._events)

    def restore(self, snap: int) -> None:
        del self._events[snap:]

    def __repr__(self) -> str:
        return f"EventLog(events={len(self._events)})"

"""Per-record transaction enrichment.

:func:`enrich_transaction` turns one raw, source-specific transaction mapping
into an :class:`~spending_insights.models.EnrichedTransaction`: numeric
amount and currency, a display description, a merchant, a category with icon
and color, an ISO date and the credit/debit flag.

Raw field resolution is table driven. Each derived field has an ordered tuple
of accessors (dotted paths into the record); the first accessor whose value
survives coercion wins. Supported variants:

- amount: ``transactionAmount.amount``, ``amount.amount``, ``amount``
- currency: ``transactionAmount.currency``, ``amount.currency``, ``currency``
- description: ``description``, ``remittanceInformationUnstructured``,
  ``reference``
- merchant: ``merchant`` (string), ``merchant.merchantName``,
  ``merchant.name``, ``enrichment.merchant.merchantName``, ``creditorName``,
  ``debtorName``, ``payeeDetails.name``, ``payerDetails.name``
- category: ``enrichment.categorisation.category``,
  ``enrichment.categorisation.categories[0]``, ``category``, then the most
  specific non-generic name of ``isoBankTransactionCode``
- date: ``bookingDateTime``, ``valueDateTime``, ``date``, ``timestamp``

Enrichment never raises on malformed records; every step has a default.
Results are memoized in an :class:`EnrichmentCache` owned by the caller
rather than written back onto the raw record.
"""

from __future__ import annotations

import hashlib
import json
import math
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import date
from typing import Any, TypeAlias, TypeVar

from .category_mapper import is_generic_category, map_category_to_info
from .category_rules import infer_category
from .logging_setup import get_logger
from .models import CategoryInfo, EnrichedTransaction, TransactionRecord

DEFAULT_CURRENCY = "EUR"
DEFAULT_DESCRIPTION = "Transaction"
UNKNOWN_MERCHANT = "Unknown"

# Key under which older clients stored an already-enriched view on the record.
LEGACY_ENRICHED_KEY = "_enriched"

_logger = get_logger("spending_insights.enrichment")

_Accessor: TypeAlias = Callable[[Mapping[str, Any]], Any]

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Accessors and coercion
# ---------------------------------------------------------------------------


def _path(*keys: str) -> _Accessor:
    def get(record: Mapping[str, Any]) -> Any:
        cur: Any = record
        for key in keys:
            if not isinstance(cur, Mapping):
                return None
            cur = cur.get(key)
        return cur

    get.__name__ = ".".join(keys)
    return get


def _text(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def _first_text(value: Any) -> str | None:
    # A category may arrive as a single label or as a list of labels.
    if isinstance(value, list | tuple):
        return _text(value[0]) if value else None
    return _text(value)


def _iso_date(value: Any) -> str | None:
    if isinstance(value, date):
        return value.isoformat()
    return _text(value)


def _resolve(
    record: Mapping[str, Any],
    accessors: tuple[_Accessor, ...],
    coerce: Callable[[Any], T | None],
) -> T | None:
    for accessor in accessors:
        value = coerce(accessor(record))
        if value is not None:
            return value
    return None


AMOUNT_ACCESSORS: tuple[_Accessor, ...] = (
    _path("transactionAmount", "amount"),
    _path("amount", "amount"),
    _path("amount"),
)
CURRENCY_ACCESSORS: tuple[_Accessor, ...] = (
    _path("transactionAmount", "currency"),
    _path("amount", "currency"),
    _path("currency"),
)
DESCRIPTION_ACCESSORS: tuple[_Accessor, ...] = (
    _path("description"),
    _path("remittanceInformationUnstructured"),
    _path("reference"),
)
MERCHANT_ACCESSORS: tuple[_Accessor, ...] = (
    _path("merchant"),
    _path("merchant", "merchantName"),
    _path("merchant", "name"),
    _path("enrichment", "merchant", "merchantName"),
    _path("creditorName"),
    _path("debtorName"),
    _path("payeeDetails", "name"),
    _path("payerDetails", "name"),
)
CATEGORY_ACCESSORS: tuple[_Accessor, ...] = (
    _path("enrichment", "categorisation", "category"),
    _path("enrichment", "categorisation", "categories"),
    _path("category"),
)
# Most specific first.
BANK_CODE_ACCESSORS: tuple[_Accessor, ...] = (
    _path("isoBankTransactionCode", "subFamilyCode", "name"),
    _path("isoBankTransactionCode", "familyCode", "name"),
    _path("isoBankTransactionCode", "domainCode", "name"),
)
DATE_ACCESSORS: tuple[_Accessor, ...] = (
    _path("bookingDateTime"),
    _path("valueDateTime"),
    _path("date"),
    _path("timestamp"),
)

_MERCHANT_TOKEN_SPLIT = re.compile(r"[\s,.\-]+")


# ---------------------------------------------------------------------------
# Field resolution
# ---------------------------------------------------------------------------


def resolve_amount(record: TransactionRecord) -> float:
    return _resolve(record, AMOUNT_ACCESSORS, _number) or 0.0


def resolve_date(record: TransactionRecord) -> str | None:
    """Return the booking/value/generic date of ``record`` as a string."""

    if isinstance(record, EnrichedTransaction):
        return record.date
    if not isinstance(record, Mapping):
        return None
    return _resolve(record, DATE_ACCESSORS, _iso_date)


def derive_merchant(description: str) -> str:
    """Title-case the first two tokens longer than two characters."""

    words = [w for w in _MERCHANT_TOKEN_SPLIT.split(description) if len(w) > 2]
    if not words:
        return UNKNOWN_MERCHANT
    return " ".join(w[:1].upper() + w[1:].lower() for w in words[:2])


def resolve_existing_category(record: TransactionRecord) -> str | None:
    """Return the category already attached to ``record``, if any.

    A category from the aggregator's own categorisation (or a flat
    ``category`` field) is returned as-is, generic or not. Only when none is
    present is the ISO bank transaction code consulted, skipping generic
    names from the most specific level upwards.
    """

    existing = _resolve(record, CATEGORY_ACCESSORS, _first_text)
    if existing is not None:
        return existing
    for accessor in BANK_CODE_ACCESSORS:
        name = _text(accessor(record))
        if name is not None and not is_generic_category(name):
            return name
    return None


def _display_description(record: TransactionRecord, working: str) -> str:
    remittance = _text(record.get("remittanceInformationUnstructured"))
    if remittance is not None and len(remittance) > 2:
        return remittance
    reference = _text(record.get("reference"))
    if reference is not None and len(reference) > 2 and reference != working:
        return reference
    info = record.get("transactionInformation")
    if isinstance(info, list | tuple):
        lines = [line.strip() for line in info if isinstance(line, str) and line.strip()]
        if lines:
            return " ".join(lines)
    elif (line := _text(info)) is not None:
        return line
    return working


def _record_id(record: TransactionRecord) -> str | None:
    raw_id = record.get("id")
    if isinstance(raw_id, bool) or raw_id is None:
        return None
    if isinstance(raw_id, str | int):
        return str(raw_id).strip() or None
    return None


def _from_legacy(record: TransactionRecord, legacy: Mapping[str, Any]) -> EnrichedTransaction | None:
    category = _text(legacy.get("category"))
    merchant = _text(legacy.get("merchant"))
    amount = _number(legacy.get("amount"))
    if category is None or merchant is None or amount is None:
        return None
    fallback = infer_category(None, None, amount)
    return EnrichedTransaction(
        id=_record_id(record),
        amount=amount,
        currency=_text(legacy.get("currency")) or DEFAULT_CURRENCY,
        description=_text(legacy.get("description")) or DEFAULT_DESCRIPTION,
        merchant=merchant,
        category=category,
        category_icon=_text(legacy.get("categoryIcon")) or fallback.icon,
        category_color=_text(legacy.get("categoryColor")) or fallback.color,
        date=_iso_date(legacy.get("date")),
        is_credit=amount >= 0,
        original_category=_text(legacy.get("originalCategory")),
        inferred_category=_text(legacy.get("inferredCategory")),
        payee_name=_text(legacy.get("payeeName")),
        payer_name=_text(legacy.get("payerName")),
    )


def _enrich(record: Any, default_currency: str) -> EnrichedTransaction:
    if isinstance(record, EnrichedTransaction):
        return record
    if not isinstance(record, Mapping):
        record = {}

    legacy = record.get(LEGACY_ENRICHED_KEY)
    if isinstance(legacy, Mapping):
        restored = _from_legacy(record, legacy)
        if restored is not None:
            return restored

    amount = resolve_amount(record)
    currency = _resolve(record, CURRENCY_ACCESSORS, _text) or default_currency
    working = _resolve(record, DESCRIPTION_ACCESSORS, _text) or DEFAULT_DESCRIPTION

    payee_name = _text(_path("payeeDetails", "name")(record))
    payer_name = _text(_path("payerDetails", "name")(record))
    merchant = _resolve(record, MERCHANT_ACCESSORS, _text) or derive_merchant(working)

    existing = resolve_existing_category(record)
    info: CategoryInfo
    if existing is not None and not is_generic_category(existing):
        info = map_category_to_info(existing, amount)
        original, inferred = existing, None
    else:
        info = infer_category(working, merchant, amount)
        original, inferred = None, info.category

    enriched = EnrichedTransaction(
        id=_record_id(record),
        amount=amount,
        currency=currency,
        description=_display_description(record, working),
        merchant=merchant,
        category=info.category,
        category_icon=info.icon,
        category_color=info.color,
        date=resolve_date(record),
        is_credit=amount >= 0,
        original_category=original,
        inferred_category=inferred,
        payee_name=payee_name,
        payer_name=payer_name,
    )
    _logger.debug(
        "enriched id=%s merchant=%r category=%r source=%s",
        enriched.id,
        enriched.merchant,
        enriched.category,
        "bank" if original is not None else "rules",
    )
    return enriched


# ---------------------------------------------------------------------------
# Memoization
# ---------------------------------------------------------------------------


class EnrichmentCache:
    """Arena of enriched views keyed by record content.

    The key is a SHA-256 fingerprint of the record's sorted-key JSON, prefixed
    with its ``id`` when it has one. Records merged from several accounts may
    share an id, so the id alone never decides a hit. Entries are written once
    and never replaced, so concurrent readers see either nothing or the same
    deterministic result. Records that cannot be fingerprinted are enriched
    without being stored.
    """

    def __init__(self, *, default_currency: str = DEFAULT_CURRENCY) -> None:
        self.default_currency = default_currency
        self._items: dict[str, EnrichedTransaction] = {}

    @staticmethod
    def key_for(record: Any) -> str | None:
        if not isinstance(record, Mapping):
            return None
        try:
            data = json.dumps(record, sort_keys=True, separators=(",", ":"), default=str)
        except (TypeError, ValueError):
            return None
        fingerprint = hashlib.sha256(data.encode("utf-8")).hexdigest()
        record_id = _record_id(record)
        return f"{record_id}:{fingerprint}" if record_id is not None else fingerprint

    def get_or_enrich(self, record: Any) -> EnrichedTransaction:
        if isinstance(record, EnrichedTransaction):
            return record
        key = self.key_for(record)
        if key is None:
            return _enrich(record, self.default_currency)
        cached = self._items.get(key)
        if cached is None:
            cached = self._items.setdefault(key, _enrich(record, self.default_currency))
        return cached

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, record: object) -> bool:
        key = self.key_for(record)
        return key is not None and key in self._items

    def clear(self) -> None:
        self._items.clear()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def enrich_transaction(record: Any, cache: EnrichmentCache | None = None) -> EnrichedTransaction:
    """Return the enriched view of one raw transaction.

    Deterministic for identical input and idempotent: an
    :class:`EnrichedTransaction` passed back in is returned unchanged. When a
    ``cache`` is given, the view is computed at most once per record key.
    """

    if cache is not None:
        return cache.get_or_enrich(record)
    return _enrich(record, DEFAULT_CURRENCY)


def enrich_transactions(
    records: Iterable[Any], cache: EnrichmentCache | None = None
) -> list[EnrichedTransaction]:
    """Enrich a batch of records through a single cache."""

    arena = cache if cache is not None else EnrichmentCache()
    return [arena.get_or_enrich(r) for r in records]


def get_category_from_transaction(record: Any) -> CategoryInfo:
    return enrich_transaction(record).category_info


__all__ = [
    "DEFAULT_CURRENCY",
    "DEFAULT_DESCRIPTION",
    "UNKNOWN_MERCHANT",
    "EnrichmentCache",
    "enrich_transaction",
    "enrich_transactions",
    "get_category_from_transaction",
    "derive_merchant",
    "resolve_amount",
    "resolve_date",
    "resolve_existing_category",
]

"""Rule tables for merchant key extraction.

Every table is immutable data grouped in :class:`MerchantTables`. The
extractor receives the tables it should use; :data:`DEFAULT_TABLES` holds the
Italian/English set shipped with the package. All entries are uppercase
because the pipeline uppercases descriptions first.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class TextRule:
    """A named regex substitution applied to a whole description."""

    name: str
    pattern: re.Pattern[str]
    replacement: str = " "

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def _rule(name: str, pattern: str, replacement: str = " ") -> TextRule:
    return TextRule(name=name, pattern=re.compile(pattern), replacement=replacement)


@dataclass(frozen=True, slots=True)
class MerchantTables:
    """Immutable bundle of every table the extraction pipeline consults.

    ``brand_dict`` maps known variants (whole strings or n-grams) to their
    canonical key. ``payment_rails`` are wallets, acquirers and generic
    payment verbs that never identify the merchant themselves; the subset in
    ``marketplace_rails`` usually precedes a ``*MERCHANT`` suffix.
    """

    overrides: Mapping[str, str]
    brand_dict: Mapping[str, str]
    payment_rails: tuple[str, ...]
    marketplace_rails: frozenset[str]
    marketplace_prefixes: tuple[str, ...]
    bridge_phrases: tuple[str, ...]
    bridge_tokens: frozenset[str]
    noise_tokens: frozenset[str]
    scoring_blacklist: frozenset[str]
    glue_words: frozenset[str]
    leading_prefixes: tuple[str, ...]
    bank_patterns: tuple[TextRule, ...]
    noise_rules: tuple[TextRule, ...]
    cities: frozenset[str]
    brand_fragments: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        # Tokens of canonical brand names, used by the token scorer.
        fragments = {
            tok
            for canonical in self.brand_dict.values()
            for tok in canonical.split()
            if len(tok) > 3
        }
        object.__setattr__(self, "brand_fragments", frozenset(fragments))


# ---------------------------------------------------------------------------
# Default Italian/English tables
# ---------------------------------------------------------------------------

_OVERRIDES = {
    "COMMISSIONI TENUTA CONTO": "COMMISSIONI BANCARIE",
    "IMPOSTA DI BOLLO": "IMPOSTA DI BOLLO",
    "CANONE MENSILE BASE": "CANONE CONTO",
}

_BRAND_DICT = {
    # Grocery
    "ESSELUNGA": "ESSELUNGA",
    "ESSE LUNGA": "ESSELUNGA",
    "COOP": "COOP",
    "COOP ITALIA": "COOP",
    "COOP LOMBARDIA": "COOP",
    "CONAD": "CONAD",
    "CONAD CITY": "CONAD",
    "CONAD SUPERSTORE": "CONAD",
    "CARREFOUR": "CARREFOUR",
    "CARREFOUR EXPRESS": "CARREFOUR",
    "CARREFOUR MARKET": "CARREFOUR",
    "EUROSPIN": "EUROSPIN",
    "EUROSPIN ITALIA": "EUROSPIN",
    "LIDL": "LIDL",
    "LIDL ITALIA": "LIDL",
    "ALDI": "ALDI",
    "PENNY MARKET": "PENNY",
    # Food & drink
    "MCDONALD": "MCDONALD",
    "MCDONALDS": "MCDONALD",
    "MC DONALD": "MCDONALD",
    "MC DONALDS": "MCDONALD",
    "BURGER KING": "BURGER KING",
    "OLD WILD": "OLD WILD WEST",
    "OLD WILD WEST": "OLD WILD WEST",
    "STARBUCKS": "STARBUCKS",
    # Mobility
    "AUTOSTRADE": "AUTOSTRADE",
    "AUTOSTRADE PER": "AUTOSTRADE",
    "TELEPASS": "TELEPASS",
    "TELEPASS PAY": "TELEPASS",
    "TRENITALIA": "TRENITALIA",
    "RYANAIR": "RYANAIR",
    "SHELL": "SHELL",
    # Subscriptions & digital
    "NETFLIX": "NETFLIX",
    "NETFLIX COM": "NETFLIX",
    "SPOTIFY": "SPOTIFY",
    "SPOTIFY AB": "SPOTIFY",
    "APPLE": "APPLE",
    "APPLE COM": "APPLE",
    "DISNEY PLUS": "DISNEY PLUS",
    "DISNEYPLUS": "DISNEY PLUS",
    "DAZN": "DAZN",
    "GOOGLE": "GOOGLE",
    "FACEBOOK": "META",
    # Utilities & telecom
    "ENEL": "ENEL",
    "ENEL ENERGIA": "ENEL",
    "A2A": "A2A",
    "A2A ENERGIA": "A2A",
    "FASTWEB": "FASTWEB",
    # Retail
    "AMAZON": "AMAZON",
    "AMZN": "AMAZON",
    "AMAZON EU": "AMAZON",
    "AMAZON PRIME": "AMAZON PRIME",
    "ZARA": "ZARA",
    "H&M": "H&M",
    "FARMACIA": "FARMACIA",
}

_PAYMENT_RAILS = (
    "APPLE PAY",
    "GOOGLE PAY",
    "SAMSUNG PAY",
    "PAYPAL",
    "SUMUP",
    "STRIPE",
    "CURVE",
    "CRV",
    "SATISPAY",
    "AMAZON PAYMENTS",
    "AMAZON PAYMENT",
    "AMAZON PAY",
    "KLARNA",
    "SCALAPAY",
    "NEXI",
    "MOONEY",
    "POSTEPAY",
    "BANCOMAT PAY",
    "BANCOMAT",
    "VISA",
    "MASTERCARD",
    "MAESTRO",
    "CONTACTLESS",
    "POS",
    "CARTA",
    "PAGAMENTO",
    "ADDEBITO",
    "PRELIEVO",
    "BONIFICO",
)

_MARKETPLACE_RAILS = frozenset(
    {
        "APPLE PAY",
        "GOOGLE PAY",
        "SAMSUNG PAY",
        "PAYPAL",
        "SUMUP",
        "STRIPE",
        "CURVE",
        "CRV",
        "SATISPAY",
        "AMAZON PAYMENTS",
        "AMAZON PAYMENT",
        "AMAZON PAY",
        "KLARNA",
        "SCALAPAY",
        "NEXI",
    }
)

_MARKETPLACE_PREFIXES = (
    "AMAZON",
    "AMZN",
    "PAYPAL",
    "SUMUP",
    "STRIPE",
    "SQUARE",
    "SQ",
    "KLARNA",
    "SATISPAY",
    "ZETTLE",
)

_BRIDGE_PHRASES = ("MARKETPLACE", "MKTP", "PAGAMENTO A", "PRESSO")

_BRIDGE_TOKENS = frozenset(
    {
        "MARKETPLACE",
        "MKTP",
        "MKT",
        "EU",
        "IE",
        "IT",
        "LU",
        "DE",
        "FR",
        "ES",
        "NL",
        "UK",
        "GB",
        "US",
        "SE",
        "CH",
        "AT",
        "BE",
        "PT",
    }
)

_NOISE_TOKENS = frozenset(
    {
        # Legal forms
        "SRL",
        "SRLS",
        "SPA",
        "SNC",
        "SAS",
        "LTD",
        "LLC",
        "INC",
        "CORP",
        "GMBH",
        "AG",
        "SA",
        "BV",
        "NV",
        "AB",
        # Country words
        "ITA",
        "ITALIA",
        "ITALY",
        "EUROPE",
        # Address words
        "VIA",
        "VIALE",
        "PIAZZA",
        "PIAZZALE",
        "CORSO",
        "LARGO",
        "VICOLO",
        "STRADA",
        # Misc
        "NR",
        "NUM",
        "TEL",
        "EUR",
        "USD",
        "GBP",
        "CHF",
        "COM",
        "WWW",
        "HTTP",
        "HTTPS",
    }
)

_SCORING_BLACKLIST = frozenset(
    {
        "PAGAMENTO",
        "PAGAMENTI",
        "BONIFICO",
        "ADDEBITO",
        "ACCREDITO",
        "PRELIEVO",
        "COMMISSIONE",
        "COMMISSIONI",
        "OPERAZIONE",
        "TRANSAZIONE",
        "DISPOSIZIONE",
        "GIROCONTO",
        "ACQUISTO",
        "RICARICA",
        "STORNO",
        "RIMBORSO",
        "SPESE",
        "CANONE",
        "IMPOSTA",
        "EFFETTUATO",
        "ESEGUITO",
        "PAYMENT",
        "PURCHASE",
        "TRANSFER",
    }
)

_GLUE_WORDS = frozenset({"DA", "DI", "DE", "DEL", "LA", "LE", "IL", "LO", "AL", "EL", "DU", "E"})

_LEADING_PREFIXES = (
    "OP.",
    "OP",
    "DISP.",
    "DISPOSIZIONE",
    "SEPA",
    "SDD",
    "ACQUISTO",
    "ATM",
    "GIROCONTO",
    "COMMISSIONE",
    "OPERAZIONE",
    "TRANSAZIONE",
    "MOVIMENTO",
)

_BANK_PATTERNS = (
    _rule("card_number_prefix", r"^CARTA\s+\d+\s+", ""),
    _rule("pos_time_prefix", r"^POS\s+\d{2}\.\d{2}\s+", ""),
    _rule("operation_number_prefix", r"^(?:OP\.?|OPERAZIONE)\s*N\.?\s*\d+\s+", ""),
)

# Ordered; separators "* - / : @ &" deliberately survive the punctuation rule.
_NOISE_RULES = (
    _rule("dated_reference", r"\bDEL\s+\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}\b"),
    _rule(
        "full_date",
        r"\b(?:\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}|\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})\b",
    ),
    _rule("card_with_amount", r"\*\d{4,}\s+DI\s+EUR\s+\d+[,.]\d{2}"),
    _rule("amount_in_euro", r"\bDI\s+EUR\s+\d+[,.]\d{2}\b"),
    _rule("card_suffix", r"\*\d{4,}"),
    _rule("masked_card", r"[*X]{4,}\d{0,4}"),
    _rule("long_digit_run", r"\d{6,}"),
    _rule("short_date_or_amount", r"\b\d{1,4}[.,/]\d{1,2}\b"),
    _rule("punctuation", r"[.,;!?()'\"\[\]{}#$%^+=\\_~|<>]"),
)

_CITIES = frozenset(
    {
        "ROMA",
        "MILANO",
        "TORINO",
        "NAPOLI",
        "FIRENZE",
        "BOLOGNA",
        "VENEZIA",
        "GENOVA",
        "PALERMO",
        "BARI",
        "CATANIA",
        "VERONA",
        "PADOVA",
        "TRIESTE",
        "BRESCIA",
        "BERGAMO",
        "MONZA",
        "PARMA",
        "MODENA",
        "LONDRA",
        "LONDON",
        "PARIGI",
        "PARIS",
        "BERLINO",
        "BERLIN",
        "MADRID",
        "BARCELLONA",
        "BARCELONA",
        "AMSTERDAM",
        "DUBLIN",
        "DUBLINO",
    }
)


DEFAULT_TABLES = MerchantTables(
    overrides=MappingProxyType(_OVERRIDES),
    brand_dict=MappingProxyType(_BRAND_DICT),
    payment_rails=_PAYMENT_RAILS,
    marketplace_rails=_MARKETPLACE_RAILS,
    marketplace_prefixes=_MARKETPLACE_PREFIXES,
    bridge_phrases=_BRIDGE_PHRASES,
    bridge_tokens=_BRIDGE_TOKENS,
    noise_tokens=_NOISE_TOKENS,
    scoring_blacklist=_SCORING_BLACKLIST,
    glue_words=_GLUE_WORDS,
    leading_prefixes=_LEADING_PREFIXES,
    bank_patterns=_BANK_PATTERNS,
    noise_rules=_NOISE_RULES,
    cities=_CITIES,
)


__all__ = ["DEFAULT_TABLES", "MerchantTables", "TextRule"]

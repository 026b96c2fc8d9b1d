"""
app/mappers/mapping_heuristics.py

Keyword rule engine that proposes field mappings for an unfamiliar carrier CSV.

Each rule group fires when one of its trigger keywords appears in a header.
Its qualifier rules are tried in order and the first hit picks the target
field; otherwise the group's fallback target is used. Groups are independent,
so one header can feed several fields, and across headers the last match for
a field wins. Carrier-specific keyword packs are extra groups passed to
``MappingHeuristics``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from app.domain.rate_import import MappingSuggestion
from app.domain.rate_template import BaseUnit, CalculationType


def normalize_header(header: str) -> str:
    """
    Lower-case a header and drop everything outside [a-z0-9].
    """

    return "".join(ch for ch in str(header).lower() if ch.isascii() and ch.isalnum())


@dataclass(frozen=True)
class HeaderKey:
    """
    Matching key for one header: the normalized form plus the lower-cased raw text.
    """

    raw: str
    normalized: str

    @classmethod
    def from_header(cls, header: str) -> HeaderKey:
        return cls(raw=str(header).lower(), normalized=normalize_header(header))


HeaderPredicate = Callable[[HeaderKey], bool]


def contains(*keywords: str) -> HeaderPredicate:
    """
    Substring test against the normalized header.

    Keywords with punctuation (such as ``%``) cannot survive normalization,
    so they are tested against the raw lower-cased header instead.
    """

    def _predicate(key: HeaderKey) -> bool:
        for keyword in keywords:
            haystack = key.normalized if keyword.isalnum() else key.raw
            if keyword in haystack:
                return True
        return False

    return _predicate


def any_of(*predicates: HeaderPredicate) -> HeaderPredicate:
    def _predicate(key: HeaderKey) -> bool:
        return any(predicate(key) for predicate in predicates)

    return _predicate


def _to_keyword(key: HeaderKey) -> bool:
    # total headers are rates, never destinations
    return "to" in key.normalized.replace("total", "")


@dataclass(frozen=True)
class HeaderRule:
    when: HeaderPredicate
    target: str


@dataclass(frozen=True)
class HeaderRuleGroup:
    name: str
    trigger: HeaderPredicate
    rules: tuple[HeaderRule, ...] = ()
    fallback: str | None = None

    def resolve(self, key: HeaderKey) -> str | None:
        if not self.trigger(key):
            return None
        for rule in self.rules:
            if rule.when(key):
                return rule.target
        return self.fallback


def _geography(name: str, trigger: HeaderPredicate) -> HeaderRuleGroup:
    return HeaderRuleGroup(
        name=name,
        trigger=trigger,
        rules=(
            HeaderRule(contains("city"), f"{name}_city"),
            HeaderRule(contains("province", "state"), f"{name}_province"),
            HeaderRule(contains("postal", "zip"), f"{name}_postal"),
        ),
        fallback=name,
    )


DEFAULT_RULE_GROUPS: tuple[HeaderRuleGroup, ...] = (
    _geography("origin", contains("origin", "from")),
    _geography("destination", any_of(contains("destination", "dest"), _to_keyword)),
    HeaderRuleGroup(
        name="weight",
        trigger=contains("weight"),
        rules=(
            HeaderRule(contains("min"), "weight_min"),
            HeaderRule(contains("max"), "weight_max"),
        ),
        fallback="weight",
    ),
    HeaderRuleGroup(
        name="rate",
        trigger=contains("rate", "price", "cost"),
        rules=(
            HeaderRule(contains("base", "linehaul"), "base_rate"),
            HeaderRule(contains("min"), "min_charge"),
            HeaderRule(contains("total"), "total_rate"),
        ),
        fallback="base_rate",
    ),
    HeaderRuleGroup(
        name="fuel",
        trigger=contains("fuel"),
        rules=(HeaderRule(contains("pct", "percent", "%"), "fuel_surcharge_pct"),),
        fallback="fuel_surcharge",
    ),
    HeaderRuleGroup(name="service", trigger=contains("service", "level"), fallback="service_level"),
    HeaderRuleGroup(name="transit", trigger=contains("transit", "days", "time"), fallback="transit_days"),
    HeaderRuleGroup(name="skid", trigger=contains("skid", "pallet"), fallback="skid_count"),
    HeaderRuleGroup(name="linear_feet", trigger=contains("linear", "lf", "feet"), fallback="linear_feet"),
)


class MappingHeuristics:
    """
    Proposes field mappings from raw CSV headers and one sample row.
    """

    def __init__(self, *, extra_groups: Sequence[HeaderRuleGroup] = ()) -> None:
        self._groups: tuple[HeaderRuleGroup, ...] = (*DEFAULT_RULE_GROUPS, *extra_groups)

    def suggest(
        self,
        headers: Sequence[str],
        sample_row: Sequence[str] | None = None,
    ) -> MappingSuggestion:
        sample = list(sample_row or [])
        field_mappings: dict[str, str] = {}

        for index, header in enumerate(headers):
            if header is None:
                continue
            key = HeaderKey.from_header(header)
            if not key.normalized and not key.raw.strip():
                continue
            sample_value = sample[index] if index < len(sample) else None

            for group in self._groups:
                target = group.resolve(key)
                if target is None:
                    continue
                if target == "fuel_surcharge" and _looks_like_percentage(sample_value):
                    target = "fuel_surcharge_pct"
                field_mappings[target] = header

        return MappingSuggestion(
            field_mappings=field_mappings,
            csv_structure={
                "has_headers": True,
                "header_row": 1,
                "data_start_row": 2,
                "expected_columns": list(headers),
                "required_columns": [],
            },
            rate_calculation_rules={
                "calculation_type": CalculationType.EXPLICIT,
                "base_unit": infer_base_unit(field_mappings),
            },
            sample_data=[[("" if cell is None else str(cell)) for cell in sample]] if sample else [],
        )


def infer_base_unit(field_mappings: dict[str, str]) -> str:
    if "skid_count" in field_mappings:
        return BaseUnit.SKID
    if "linear_feet" in field_mappings:
        return BaseUnit.LINEAR_FEET
    return BaseUnit.WEIGHT


def _looks_like_percentage(value: str | None) -> bool:
    return value is not None and str(value).strip().endswith("%")

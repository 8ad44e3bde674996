import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

from app.domain.pricing.models import RuleCategory, ValueType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateRule:
    category: RuleCategory
    option: str
    value: float
    value_type: ValueType = ValueType.fixed
    time: float = 0.0
    configured: bool = True


@dataclass(frozen=True)
class RuleSet:
    """Immutable snapshot of the active pricing rules used for one calculation."""

    source: str
    config_hash: str
    rules: Mapping[tuple[RuleCategory, str], RateRule] = field(default_factory=dict)

    def lookup(self, category: RuleCategory, option: str) -> RateRule | None:
        return self.rules.get((category, option))

    def contribution(self, category: RuleCategory, option: str) -> RateRule:
        rule = self.lookup(category, option)
        if rule is None:
            return RateRule(category=category, option=option, value=0.0, time=0.0, configured=False)
        return rule

    def __len__(self) -> int:
        return len(self.rules)

    @classmethod
    def from_rules(cls, rules: Iterable[RateRule], *, source: str) -> "RuleSet":
        indexed: dict[tuple[RuleCategory, str], RateRule] = {}
        for rule in rules:
            key = (rule.category, rule.option)
            if key in indexed:
                logger.warning(
                    "pricing_rule_duplicate",
                    extra={"extra": {"source": source, "category": rule.category.value, "option": rule.option}},
                )
                continue
            indexed[key] = rule
        return cls(source=source, config_hash=_hash_rules(indexed.values()), rules=indexed)


def _canonical_json(data: Any) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def _hash_rules(rules: Iterable[RateRule]) -> str:
    payload = sorted(
        (
            {
                "category": rule.category.value,
                "option": rule.option,
                "value": rule.value,
                "value_type": rule.value_type.value,
                "time": rule.time,
            }
            for rule in rules
        ),
        key=lambda item: (item["category"], item["option"]),
    )
    digest = hashlib.sha256(_canonical_json(payload).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


def rule_from_mapping(data: Dict[str, Any]) -> RateRule:
    return RateRule(
        category=RuleCategory(data["category"]),
        option=str(data["option"]),
        value=float(data.get("value") or 0.0),
        value_type=ValueType(data.get("value_type") or ValueType.fixed.value),
        time=float(data.get("time") or 0.0),
    )


def _resolve_rules_path(path: str) -> Path:
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    cwd_candidate = (Path.cwd() / candidate).resolve()
    if cwd_candidate.exists():
        return cwd_candidate
    module_candidate = Path(__file__).resolve().parents[3] / candidate
    if module_candidate.exists():
        return module_candidate
    raise FileNotFoundError(f"Pricing rules not found at {path}")


def load_rule_config(path: str) -> dict[str, Any]:
    resolved_path = _resolve_rules_path(path)
    return json.loads(resolved_path.read_text(encoding="utf-8"))


def rule_set_from_config(data: dict[str, Any]) -> RuleSet:
    source = f"{data['rule_set_id']}:{data['rule_set_version']}"
    return RuleSet.from_rules((rule_from_mapping(item) for item in data["rules"]), source=source)


def load_rule_set(path: str) -> RuleSet:
    return rule_set_from_config(load_rule_config(path))

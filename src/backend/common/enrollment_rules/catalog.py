from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from .config import RulesConfig, default_rules_config, load_rules_config
from .registry import registry

# Ensure built-in checks are imported/registered when generating a catalog.
from . import checks as _builtin_checks  # noqa: F401


class RuleCatalogEntry(BaseModel):
    kind: str
    title: str = ""

    module: str
    class_name: str

    rule_model: str
    rule_schema: Dict[str, Any]

    # Field ids in the active config that use this rule kind.
    used_by: List[str] = Field(default_factory=list)


def build_catalog(config: Optional[RulesConfig] = None) -> List[RuleCatalogEntry]:
    config = config if config is not None else default_rules_config()

    usage: Dict[str, List[str]] = {}
    for field in config.fields:
        for rule in field.validations:
            users = usage.setdefault(rule.kind.value, [])
            if field.id not in users:
                users.append(field.id)

    entries: List[RuleCatalogEntry] = []
    for kind in registry.kinds():
        check = registry.get(kind)
        rule_model = check.rule_model
        entries.append(
            RuleCatalogEntry(
                kind=kind.value,
                title=check.title,
                module=type(check).__module__,
                class_name=type(check).__name__,
                rule_model=rule_model.__name__,
                rule_schema=rule_model.model_json_schema(by_alias=True),
                used_by=usage.get(kind.value, []),
            )
        )

    entries.sort(key=lambda e: e.kind)
    return entries


def _dump_json(catalog: list[dict[str, Any]]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True)


def _dump_yaml(catalog: list[dict[str, Any]]) -> str:
    return yaml.safe_dump(catalog, sort_keys=True, allow_unicode=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate a catalog of rule kinds and where they are used.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    parser.add_argument(
        "--rules",
        default=None,
        help="Rules config file to report usage for (default: built-in rules).",
    )
    args = parser.parse_args(argv)

    config = load_rules_config(Path(args.rules)) if args.rules else None
    catalog = [e.model_dump() for e in build_catalog(config)]
    if args.format == "json":
        print(_dump_json(catalog))
    else:
        print(_dump_yaml(catalog))


if __name__ == "__main__":
    main()

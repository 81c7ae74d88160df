from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from sql_advisor.core.config import get_settings
from sql_advisor.models.analysis import AnalysisRequest
from sql_advisor.services.advisor.augmenter import AbsentAugmenter, build_augmenter
from sql_advisor.services.advisor.engine import AdvisoryEngine
from sql_advisor.utils.logging import new_request_id


def _read_optional(path: str | None) -> str | None:
    if not path:
        return None
    return Path(path).read_text(encoding="utf-8")


def main() -> int:
    parser = argparse.ArgumentParser(description="Analyze one SQL query and print the advisory as JSON.")
    parser.add_argument("sql_file", nargs="?", help="SQL file to analyze (reads stdin when omitted)")
    parser.add_argument("--dbms", default="sqlserver", choices=["sqlserver", "postgres", "mysql"])
    parser.add_argument("--plan", help="execution plan file (XML/JSON/text)")
    parser.add_argument("--context", default=None, help="known indexes, row counts, symptoms")
    parser.add_argument("--version", dest="engine_version", default=None, help="engine version hint")
    parser.add_argument("--static-only", action="store_true", help="skip the LLM augmentation pass")
    args = parser.parse_args()

    sql_text = _read_optional(args.sql_file) if args.sql_file else sys.stdin.read()
    if not str(sql_text or "").strip():
        print("FAIL: no SQL text provided", file=sys.stderr)
        return 2

    request = AnalysisRequest(
        dbms=args.dbms,
        sql_text=sql_text,
        plan_xml=_read_optional(args.plan),
        context=args.context,
        version=args.engine_version,
    )
    augmenter = AbsentAugmenter() if args.static_only else build_augmenter(get_settings())
    result = AdvisoryEngine(augmenter).analyze(request, request_id=new_request_id())
    print(json.dumps(result.model_dump(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

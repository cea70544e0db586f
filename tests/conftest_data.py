# tests/conftest_data.py

"""测试用的示例卡片项目。"""

import json
from pathlib import Path
from typing import Any

PREFIX = "test"
MODULE = "base"


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=4), encoding="utf-8")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def build_project_tree(root: Path) -> Path:
    """
    一个小而完整的项目：
    - 两个工作流、两个字段类型、一个卡片类型、一个链接类型
    - 一个计算、一个报告、一个模板（含一张模板卡片）
    - 一个导入模块 'base'
    - 两张卡片（test_2 是 test_1 的子卡片）
    """
    local = root / ".cards" / "local"
    write_json(local / "cardsConfig.json", {"cardKeyPrefix": PREFIX, "name": "Test project"})

    write_json(local / "workflows" / "simple.json", {
        "name": f"{PREFIX}/workflows/simple",
        "displayName": "Simple",
        "states": [
            {"name": "Draft", "category": "initial"},
            {"name": "Review", "category": "active"},
            {"name": "Done", "category": "closed"},
        ],
        "transitions": [
            {"name": "Create", "fromState": [""], "toState": "Draft"},
            {"name": "Submit", "fromState": ["Draft"], "toState": "Review"},
            {"name": "Finish", "fromState": ["Draft", "Review"], "toState": "Done"},
        ],
    })
    write_json(local / "workflows" / "other.json", {
        "name": f"{PREFIX}/workflows/other",
        "displayName": "Other",
        "states": [
            {"name": "Open", "category": "initial"},
            {"name": "Closed", "category": "closed"},
        ],
        "transitions": [
            {"name": "Create", "fromState": [""], "toState": "Open"},
            {"name": "Close", "fromState": ["Open"], "toState": "Closed"},
        ],
    })

    write_json(local / "fieldTypes" / "priority.json", {
        "name": f"{PREFIX}/fieldTypes/priority",
        "displayName": "Priority",
        "dataType": "shortText",
    })
    write_json(local / "fieldTypes" / "size.json", {
        "name": f"{PREFIX}/fieldTypes/size",
        "displayName": "Size",
        "dataType": "integer",
    })

    write_json(local / "cardTypes" / "task.json", {
        "name": f"{PREFIX}/cardTypes/task",
        "displayName": "Task",
        "workflow": f"{PREFIX}/workflows/simple",
        "customFields": [{"name": f"{PREFIX}/fieldTypes/priority", "isCalculated": False}],
        "alwaysVisibleFields": [f"{PREFIX}/fieldTypes/priority"],
        "optionallyVisibleFields": [],
    })

    write_json(local / "linkTypes" / "blocks.json", {
        "name": f"{PREFIX}/linkTypes/blocks",
        "displayName": "Blocks",
        "outboundDisplayName": "blocks",
        "inboundDisplayName": "is blocked by",
        "sourceCardTypes": [f"{PREFIX}/cardTypes/task"],
        "destinationCardTypes": [f"{PREFIX}/cardTypes/task"],
        "enableLinkDescription": False,
    })

    write_json(local / "calculations" / "rules.json", {"name": f"{PREFIX}/calculations/rules", "displayName": ""})
    write_text(
        local / "calculations" / "rules" / "calculation.lp",
        f'field(Card, "{PREFIX}/fieldTypes/priority", "high") :- card(Card), cardType(Card, "{PREFIX}/cardTypes/task").\n',
    )

    write_json(local / "reports" / "summary.json", {
        "name": f"{PREFIX}/reports/summary",
        "displayName": "Summary",
        "category": "Uncategorised report",
    })
    write_text(local / "reports" / "summary" / "index.adoc.hbs", f"Tasks of type {PREFIX}/cardTypes/task\n")
    write_text(local / "reports" / "summary" / "query.lp.hbs", f'select(Card) :- cardType(Card, "{PREFIX}/cardTypes/task").\n')
    write_json(local / "reports" / "summary" / "parameterSchema.json", {"type": "object"})

    write_json(local / "templates" / "default.json", {"name": f"{PREFIX}/templates/default", "displayName": "Default"})
    write_json(local / "templates" / "default" / "c" / "test_tpl1" / "index.json", {
        "cardType": f"{PREFIX}/cardTypes/task",
        "title": "Template card",
        "workflowState": "Draft",
    })
    write_text(local / "templates" / "default" / "c" / "test_tpl1" / "index.adoc", "Template content\n")

    write_json(root / ".cards" / "modules" / MODULE / "fieldTypes" / "shared.json", {
        "name": f"{MODULE}/fieldTypes/shared",
        "displayName": "Shared",
        "dataType": "shortText",
    })

    write_json(root / "cardRoot" / "test_1" / "index.json", {
        "title": "First",
        "cardType": f"{PREFIX}/cardTypes/task",
        "workflowState": "Draft",
        f"{PREFIX}/fieldTypes/priority": "high",
        "links": [{"linkType": f"{PREFIX}/linkTypes/blocks", "cardKey": "test_2"}],
    })
    write_text(root / "cardRoot" / "test_1" / "index.adoc", "First card\n")
    write_json(root / "cardRoot" / "test_1" / "c" / "test_2" / "index.json", {
        "title": "Second",
        "cardType": f"{PREFIX}/cardTypes/task",
        "workflowState": "Review",
        f"{PREFIX}/fieldTypes/priority": None,
        "links": [],
    })
    write_text(
        root / "cardRoot" / "test_1" / "c" / "test_2" / "index.adoc",
        f'{{{{#report}}}}"name": "{PREFIX}/reports/summary"{{{{/report}}}}\n',
    )
    return root

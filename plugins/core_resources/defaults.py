# plugins/core_resources/defaults.py

from typing import Any, Dict

DATA_TYPES = (
    "shortText",
    "longText",
    "number",
    "integer",
    "boolean",
    "enum",
    "list",
    "date",
    "dateTime",
    "person",
)


class DefaultContent:
    """新建资源时使用的默认内容。"""

    @staticmethod
    def card_type(name: str, workflow: str) -> Dict[str, Any]:
        return {
            "name": name,
            "displayName": "",
            "workflow": workflow,
            "customFields": [],
            "alwaysVisibleFields": [],
            "optionallyVisibleFields": [],
        }

    @staticmethod
    def field_type(name: str, data_type: str) -> Dict[str, Any]:
        value: Dict[str, Any] = {"name": name, "displayName": "", "dataType": data_type}
        if data_type == "enum":
            value["enumValues"] = [{"enumValue": "value1"}, {"enumValue": "value2"}]
        return value

    @staticmethod
    def link_type(name: str) -> Dict[str, Any]:
        return {
            "name": name,
            "displayName": "",
            "outboundDisplayName": name,
            "inboundDisplayName": name,
            "sourceCardTypes": [],
            "destinationCardTypes": [],
            "enableLinkDescription": False,
        }

    @staticmethod
    def workflow(name: str) -> Dict[str, Any]:
        return {
            "name": name,
            "displayName": "",
            "states": [
                {"name": "Draft", "category": "initial"},
                {"name": "Approved", "category": "closed"},
                {"name": "Deprecated", "category": "closed"},
            ],
            "transitions": [
                {"name": "Create", "fromState": [""], "toState": "Draft"},
                {"name": "Approve", "fromState": ["Draft"], "toState": "Approved"},
                {"name": "Archive", "fromState": ["*"], "toState": "Deprecated"},
            ],
        }

    @staticmethod
    def report(name: str) -> Dict[str, Any]:
        return {"name": name, "displayName": "", "category": "Uncategorised report"}

    @staticmethod
    def calculation(name: str) -> Dict[str, Any]:
        return {"name": name, "displayName": ""}

    @staticmethod
    def template(name: str) -> Dict[str, Any]:
        return {"name": name, "displayName": ""}

    @staticmethod
    def graph_model(name: str) -> Dict[str, Any]:
        return {"name": name, "displayName": ""}

    @staticmethod
    def graph_view(name: str) -> Dict[str, Any]:
        return {"name": name, "displayName": ""}

# plugins/core_resources/resources/__init__.py

from typing import Dict, Type

from ..resource_object import ResourceObject
from .calculation import CalculationResource
from .card_type import CardTypeResource
from .field_type import FieldTypeResource
from .graph_model import GraphModelResource
from .graph_view import GraphViewResource
from .link_type import LinkTypeResource
from .report import ReportResource
from .template import TemplateResource
from .workflow import WorkflowResource

# 资源类型（目录名）-> 资源类
RESOURCE_CLASSES: Dict[str, Type[ResourceObject]] = {
    "calculations": CalculationResource,
    "cardTypes": CardTypeResource,
    "fieldTypes": FieldTypeResource,
    "graphModels": GraphModelResource,
    "graphViews": GraphViewResource,
    "linkTypes": LinkTypeResource,
    "reports": ReportResource,
    "templates": TemplateResource,
    "workflows": WorkflowResource,
}

__all__ = [
    "RESOURCE_CLASSES",
    "CalculationResource",
    "CardTypeResource",
    "FieldTypeResource",
    "GraphModelResource",
    "GraphViewResource",
    "LinkTypeResource",
    "ReportResource",
    "TemplateResource",
    "WorkflowResource",
]

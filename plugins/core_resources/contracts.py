# plugins/core_resources/contracts.py

from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

# --- 1. 资源来源与注册表条目 ---

class ResourcesFrom(str, Enum):
    """列出资源时的来源策略。"""
    ALL = "all"
    LOCAL = "local"
    IMPORTED = "imported"


ResourceSource = Literal["local", "module"]


class Resource(BaseModel):
    """
    存在性索引中的一条记录：磁盘上确实存在的资源。
    与是否已加载内容无关。
    """
    name: str = Field(..., description="资源名的字符串形式 'prefix/type/identifier'。")
    type: str
    path: str = Field(..., description="资源文件（或文件夹资源的元数据文件）所在目录。")
    source: ResourceSource = "local"
    module_name: Optional[str] = None


# --- 2. 操作协议 (add / change / rank / remove / replaceAll) ---

class _OperationBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MappingTable(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    state_mapping: Dict[str, str] = Field(default_factory=dict, alias="stateMapping")


class AddOperation(_OperationBase):
    name: Literal["add"] = "add"
    target: Any


class ChangeOperation(_OperationBase):
    name: Literal["change"] = "change"
    target: Any
    to: Any
    mapping_table: Optional[MappingTable] = Field(default=None, alias="mappingTable")


class RankOperation(_OperationBase):
    name: Literal["rank"] = "rank"
    target: Any
    new_index: int = Field(..., alias="newIndex")


class RemoveOperation(_OperationBase):
    name: Literal["remove"] = "remove"
    target: Any
    replacement_value: Optional[Any] = Field(default=None, alias="replacementValue")


class ReplaceAllOperation(_OperationBase):
    """整体替换数组。旧协议中以 change 的 'to' 为 JSON 字符串来表达。"""
    name: Literal["replaceAll"] = "replaceAll"
    to: List[Any]
    target: Any = None


Operation = Annotated[
    Union[AddOperation, ChangeOperation, RankOperation, RemoveOperation, ReplaceAllOperation],
    Field(discriminator="name"),
]


_OPERATION_ADAPTER: "TypeAdapter[Operation]" = TypeAdapter(Operation)


def parse_operation(op: Any) -> Any:
    """接受操作模型或其 JSON 形式 (dict)。"""
    if isinstance(op, BaseModel):
        return op
    return _OPERATION_ADAPTER.validate_python(op)


class UpdateKey(BaseModel):
    """要修改的属性。key == 'content' 时 sub_key 指向文件夹资源的内容文件。"""
    model_config = ConfigDict(populate_by_name=True)
    key: str
    sub_key: Optional[str] = Field(default=None, alias="subKey")


def operation_value(op: Any) -> Any:
    """操作所携带的“值”，用于错误消息。"""
    if isinstance(op, RankOperation):
        return op.new_index
    if isinstance(op, (ChangeOperation, ReplaceAllOperation)):
        return op.to
    return op.target


# --- 3. 各资源类型可更新的键 ---

class CardTypeKey(str, Enum):
    NAME = "name"
    DISPLAY_NAME = "displayName"
    DESCRIPTION = "description"
    WORKFLOW = "workflow"
    CUSTOM_FIELDS = "customFields"
    ALWAYS_VISIBLE_FIELDS = "alwaysVisibleFields"
    OPTIONALLY_VISIBLE_FIELDS = "optionallyVisibleFields"


class WorkflowKey(str, Enum):
    NAME = "name"
    DISPLAY_NAME = "displayName"
    DESCRIPTION = "description"
    STATES = "states"
    TRANSITIONS = "transitions"


class FieldTypeKey(str, Enum):
    NAME = "name"
    DISPLAY_NAME = "displayName"
    DESCRIPTION = "description"
    DATA_TYPE = "dataType"
    ENUM_VALUES = "enumValues"
    FIELD_DESCRIPTION = "fieldDescription"


class LinkTypeKey(str, Enum):
    NAME = "name"
    DISPLAY_NAME = "displayName"
    DESCRIPTION = "description"
    OUTBOUND_DISPLAY_NAME = "outboundDisplayName"
    INBOUND_DISPLAY_NAME = "inboundDisplayName"
    SOURCE_CARD_TYPES = "sourceCardTypes"
    DESTINATION_CARD_TYPES = "destinationCardTypes"
    ENABLE_LINK_DESCRIPTION = "enableLinkDescription"


class FolderKey(str, Enum):
    NAME = "name"
    DISPLAY_NAME = "displayName"
    DESCRIPTION = "description"
    CONTENT = "content"


class CategorizedFolderKey(str, Enum):
    """报告与图视图额外支持 'category'。"""
    NAME = "name"
    DISPLAY_NAME = "displayName"
    DESCRIPTION = "description"
    CATEGORY = "category"
    CONTENT = "content"


class TemplateKey(str, Enum):
    NAME = "name"
    DISPLAY_NAME = "displayName"
    DESCRIPTION = "description"
    CATEGORY = "category"


# --- 4. 外部协作者接口 ---

class SchemaValidatorInterface(ABC):
    """给定 (content, schema_id)，返回违规消息列表；空列表表示合法。"""
    @abstractmethod
    def validate(self, content: Dict[str, Any], schema_id: str) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def has_schema(self, schema_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def check_schema(self, schema: Dict[str, Any]) -> List[str]:
        """校验一个 JSON schema 本身是否合法（报告参数 schema 使用）。"""
        raise NotImplementedError


class ConfigurationOperation(str, Enum):
    MODULE_ADD = "module_add"
    MODULE_REMOVE = "module_remove"
    PROJECT_RENAME = "project_rename"
    RESOURCE_CREATE = "resource_create"
    RESOURCE_DELETE = "resource_delete"
    RESOURCE_RENAME = "resource_rename"
    RESOURCE_UPDATE = "resource_update"


class ConfigurationLogEntry(BaseModel):
    timestamp: str
    operation: ConfigurationOperation
    target: str
    parameters: Optional[Dict[str, Any]] = None


class ConfigurationLoggerInterface(ABC):
    @abstractmethod
    async def log(
        self,
        operation: ConfigurationOperation,
        target: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    async def entries(self) -> List[ConfigurationLogEntry]:
        raise NotImplementedError


# --- 5. API 请求体 ---

class CreateResourceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    identifier: str
    content: Optional[Dict[str, Any]] = None
    workflow: Optional[str] = Field(default=None, description="创建卡片类型时必需。")
    data_type: Optional[str] = Field(default=None, alias="dataType", description="创建字段类型时使用。")


class UpdateResourceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    update_key: UpdateKey = Field(..., alias="updateKey")
    operation: Operation


class RenameResourceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    new_name: str = Field(..., alias="newName")


class FileChangedRequest(BaseModel):
    path: str

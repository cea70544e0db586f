# plugins/core_resources/errors.py

from typing import List, Optional


class ResourceError(ValueError):
    """资源引擎中所有可预期错误的基类。消息文本是对外契约的一部分。"""


class ResourceNotFoundError(ResourceError):
    pass


class ResourceExistsError(ResourceError):
    pass


class ModuleResourceError(ResourceError):
    """模块（导入）资源是只读的。"""


class InvalidResourceNameError(ResourceError):
    pass


class ResourceValidationError(ResourceError):
    pass


class OperationError(ResourceError):
    """数组或标量操作无法应用。"""


class ResourceInUseError(ResourceError):
    def __init__(self, message: str, usages: List[str]):
        super().__init__(message)
        self.usages = usages


class RenameCascadeError(ResourceError):
    """
    级联重命名（saga）在某一步失败。
    completed: 失败前已完成的步骤；compensated: 已成功回滚的步骤。
    """
    def __init__(
        self,
        message: str,
        failed_step: str,
        completed: List[str],
        compensated: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.failed_step = failed_step
        self.completed = completed
        self.compensated = compensated or []

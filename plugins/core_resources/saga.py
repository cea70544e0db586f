# plugins/core_resources/saga.py

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from .errors import RenameCascadeError

logger = logging.getLogger(__name__)

StepCallable = Callable[[], Awaitable[None]]


@dataclass
class SagaStep:
    name: str
    action: StepCallable
    compensate: Optional[StepCallable] = None


@dataclass
class RenameSaga:
    """
    级联重命名的有序步骤列表。

    步骤按顺序执行；某一步失败时，按相反顺序执行已完成步骤的补偿动作，
    然后抛出 RenameCascadeError。没有补偿动作的步骤保持已生效状态，
    并在错误中如实报告。
    """
    name: str
    steps: List[SagaStep] = field(default_factory=list)
    completed: List[str] = field(default_factory=list)

    def add_step(
        self,
        name: str,
        action: StepCallable,
        compensate: Optional[StepCallable] = None,
    ) -> "RenameSaga":
        self.steps.append(SagaStep(name=name, action=action, compensate=compensate))
        return self

    async def run(self) -> List[str]:
        done: List[SagaStep] = []
        for step in self.steps:
            try:
                await step.action()
            except Exception as e:
                logger.error(f"Saga '{self.name}' failed at step '{step.name}': {e}")
                compensated = await self._compensate(done)
                raise RenameCascadeError(
                    f"Rename cascade '{self.name}' failed at step '{step.name}': {e}",
                    failed_step=step.name,
                    completed=[s.name for s in done],
                    compensated=compensated,
                ) from e
            done.append(step)
            self.completed.append(step.name)
            logger.debug(f"Saga '{self.name}': step '{step.name}' completed.")
        return list(self.completed)

    async def _compensate(self, done: List[SagaStep]) -> List[str]:
        compensated = []
        for step in reversed(done):
            if step.compensate is None:
                continue
            try:
                await step.compensate()
                compensated.append(step.name)
            except Exception as e:
                # 补偿失败只能记录：原始错误才是需要抛给调用者的
                logger.error(f"Saga '{self.name}': compensation of step '{step.name}' failed: {e}")
        return compensated

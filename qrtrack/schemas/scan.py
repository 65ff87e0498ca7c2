from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field

from .item import CamelModel, ItemOut, NonBlankStr
from .worker import WorkerOut


class ScanRequest(CamelModel):
    qr_code: NonBlankStr


class ItemScan(CamelModel):
    kind: Literal["item"] = "item"
    code: str
    data: ItemOut
    next_action: str


class WorkerScan(CamelModel):
    kind: Literal["worker"] = "worker"
    code: str
    data: WorkerOut
    next_action: str = "attendance"


class EmptyScan(CamelModel):
    kind: Literal["none"] = "none"
    code: str
    next_action: str = "register"


ScanResultOut = Annotated[Union[ItemScan, WorkerScan, EmptyScan], Field(discriminator="kind")]

"""Display shapes an insight can produce.

Each shape carries its ``component`` tag so a computed value can be matched
against the component its definition declared, and so clients can pick a
renderer without inspecting the payload.
"""

import enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InsightComponent(str, enum.Enum):
    SIMPLE_DISPLAY = "SimpleDisplay"
    BAR_CHART = "BarChart"
    SIMPLE_TABLE = "SimpleTable"


class InsightSize(str, enum.Enum):
    SMALL = "small"
    DEFAULT = "default"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def payload(self) -> Any:
        """JSON body handed to the renderer for this component."""
        return self.model_dump(by_alias=True, exclude={"component"})


class SimpleDisplayOutput(_CamelModel):
    """A single number or preformatted string."""
    component: Literal["SimpleDisplay"] = "SimpleDisplay"
    value: int | float | str

    def payload(self) -> Any:
        return self.value


class BarChartOutput(_CamelModel):
    component: Literal["BarChart"] = "BarChart"
    data: list[dict[str, Any]]
    x_field: str
    y_field: str
    series_field: str
    x_axis_name: str
    y_axis_name: str


class TableColumn(_CamelModel):
    title: str
    data_index: str
    key: str


class SimpleTableOutput(_CamelModel):
    component: Literal["SimpleTable"] = "SimpleTable"
    columns: list[TableColumn]
    data_source: list[dict[str, Any]]


InsightOutput = Annotated[
    Union[SimpleDisplayOutput, BarChartOutput, SimpleTableOutput],
    Field(discriminator="component"),
]

"""Request payloads for the REST API; field names are camelCase on the wire."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class MaterialInput(_CamelModel):
  """One colour/finish line with its sheet count."""

  name: StrictStr = Field(min_length=1, description="Colour/finish label, for example 'White Oak 3/4'.")
  total_sheets: StrictInt = Field(description="Number of original sheets to cut; must be at least 1.")


class JobCreateRequest(_CamelModel):
  """Request payload for creating a job."""

  customer_name: StrictStr = Field(min_length=1)
  job_name: StrictStr = Field(min_length=1)
  materials: list[MaterialInput] = Field(default_factory=list, description="Optional materials placed in a first cutlist.")


class CutlistCreateRequest(_CamelModel):
  count: StrictInt = 1


class SheetStatusUpdateRequest(_CamelModel):
  """Set one sheet's status. Range and value checks happen in the store and return 400."""

  sheet_index: StrictInt
  status: StrictStr


class AddSheetsRequest(_CamelModel):
  additional_sheets: StrictInt


class RecutCreateRequest(_CamelModel):
  quantity: StrictInt
  reason: StrictStr | None = None


class ChecklistCreateRequest(_CamelModel):
  name: StrictStr | None = Field(None, description="Defaults to 'Job Preparation Checklist'.")
  category: StrictStr = Field("general", description="One of sheets, hardware, rods or general.")


class ChecklistItemCreateRequest(_CamelModel):
  """One preparation step. Priority and order checks happen in the service and return 400."""

  text: StrictStr
  priority: StrictStr = "normal"
  order_index: StrictInt | None = Field(None, description="Defaults to after the last item.")
  notes: StrictStr | None = None


class ChecklistItemUpdateRequest(_CamelModel):
  completed: StrictBool

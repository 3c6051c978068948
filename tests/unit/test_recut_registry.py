from __future__ import annotations

import pytest

from shopfloor.cutting.errors import NotFoundError, TransientIOError, ValidationError
from shopfloor.cutting.models import NewMaterial, SheetStatus
from shopfloor.services.recuts import RecutRegistry
from shopfloor.services.sheets import SheetStatusStore

P, C, S = SheetStatus.PENDING, SheetStatus.CUT, SheetStatus.SKIP


@pytest.fixture
async def material_id(repo) -> int:
  detail = await repo.create_job(job_number="JOB-1", customer_name="Acme", job_name="Kitchen", materials=[NewMaterial(name="Maple", total_sheets=2)])
  return detail.materials()[0].id


@pytest.fixture
def registry(repo, publisher, clock) -> RecutRegistry:
  return RecutRegistry(repo=repo, publisher=publisher, clock=clock)


@pytest.mark.anyio
async def test_add_recut_creates_pending_batch(registry, publisher, material_id):
  recut = await registry.add_recut(material_id, 3, "  chipped edge ")

  assert recut.quantity == 3
  assert recut.reason == "chipped edge"
  assert recut.sheet_statuses == [P, P, P]
  assert publisher.types() == ["recut_added"]
  assert publisher.events[0].payload["recutId"] == recut.id


@pytest.mark.anyio
async def test_blank_reason_is_stored_as_none(registry, material_id):
  recut = await registry.add_recut(material_id, 1, "   ")
  assert recut.reason is None


@pytest.mark.anyio
async def test_add_recut_validates_quantity_and_material(registry, repo, material_id):
  with pytest.raises(ValidationError):
    await registry.add_recut(material_id, 0)
  with pytest.raises(NotFoundError):
    await registry.add_recut(999, 1)
  assert repo.recuts == {}


@pytest.mark.anyio
async def test_recut_statuses_are_independent_of_material_sheets(registry, repo, publisher, clock, material_id):
  store = SheetStatusStore(repo=repo, publisher=publisher, clock=clock)
  recut = await registry.add_recut(material_id, 2)

  await registry.set_recut_sheet_status(recut.id, 0, "cut")
  await store.set_sheet_status(material_id, 1, "skip")

  assert repo.recuts[recut.id].sheet_statuses == [C, P]
  assert repo.materials[material_id].sheet_statuses == [P, S]
  recut_logs = [entry for entry in repo.cut_logs if entry.is_recut]
  assert len(recut_logs) == 1
  assert recut_logs[0].recut_id == recut.id
  assert recut_logs[0].material_id == material_id


@pytest.mark.anyio
async def test_recut_index_is_bounded_by_quantity(registry, repo, material_id):
  recut = await registry.add_recut(material_id, 2)
  with pytest.raises(ValidationError):
    await registry.set_recut_sheet_status(recut.id, 2, "cut")
  assert repo.recuts[recut.id].sheet_statuses == [P, P]


@pytest.mark.anyio
async def test_repeating_recut_status_does_not_log_twice(registry, repo, material_id):
  recut = await registry.add_recut(material_id, 1)
  await registry.set_recut_sheet_status(recut.id, 0, "cut")
  await registry.set_recut_sheet_status(recut.id, 0, "cut")
  assert len(repo.cut_logs) == 1


@pytest.mark.anyio
async def test_list_and_delete_recuts(registry, publisher, material_id):
  first = await registry.add_recut(material_id, 1)
  second = await registry.add_recut(material_id, 2)

  assert [recut.id for recut in await registry.list_recuts(material_id)] == [first.id, second.id]

  await registry.delete_recut(first.id)

  assert [recut.id for recut in await registry.list_recuts(material_id)] == [second.id]
  assert publisher.types()[-1] == "recut_deleted"
  with pytest.raises(NotFoundError):
    await registry.delete_recut(first.id)


@pytest.mark.anyio
async def test_list_recuts_for_unknown_material(registry):
  with pytest.raises(NotFoundError):
    await registry.list_recuts(999)


@pytest.mark.anyio
async def test_failed_recut_write_is_retried_with_its_log(registry, repo, material_id, monkeypatch):
  recut = await registry.add_recut(material_id, 2)
  real_save = repo.save_recut_sheets
  failures = [TransientIOError("recut_save_sheets failed: Deadlock detected")]

  async def flaky_save(*args, **kwargs):
    if failures:
      raise failures.pop()
    return await real_save(*args, **kwargs)

  monkeypatch.setattr(repo, "save_recut_sheets", flaky_save)

  with pytest.raises(TransientIOError):
    await registry.set_recut_sheet_status(recut.id, 1, "cut")
  assert repo.cut_logs == []

  updated = await registry.set_recut_sheet_status(recut.id, 1, "cut")

  assert updated.sheet_statuses == [P, C]
  assert [(entry.recut_id, entry.sheet_index) for entry in repo.cut_logs] == [(recut.id, 1)]


@pytest.mark.anyio
async def test_deleting_a_recut_leaves_material_and_sibling_batches_alone(registry, repo, publisher, clock, material_id):
  store = SheetStatusStore(repo=repo, publisher=publisher, clock=clock)
  await store.set_sheet_status(material_id, 0, "cut")
  await store.set_sheet_status(material_id, 1, "skip")
  doomed = await registry.add_recut(material_id, 2)
  sibling = await registry.add_recut(material_id, 3)
  await registry.set_recut_sheet_status(doomed.id, 0, "cut")
  await registry.set_recut_sheet_status(sibling.id, 2, "skip")

  await registry.delete_recut(doomed.id)

  material = await store.get_material(material_id)
  assert material.total_sheets == 2
  assert material.sheet_statuses == [C, S]
  assert [recut.id for recut in material.recut_entries] == [sibling.id]
  assert repo.recuts[sibling.id].quantity == 3
  assert repo.recuts[sibling.id].sheet_statuses == [P, P, S]

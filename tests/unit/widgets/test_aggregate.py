from __future__ import annotations

import pytest

from widget_access.widgets.aggregate import RelationAggregator


@pytest.mark.asyncio
async def test_one_view_per_widget_with_all_relations(engine, seed):
    owner = await seed.user()
    dev2, dev3 = await seed.user(), await seed.user()
    widget = await seed.widget("W", owner=owner)
    await seed.developer(widget, dev2)
    await seed.developer(widget, dev3)
    football = await seed.category("Football", "#00ff00")
    hockey = await seed.category("Hockey", "#0000ff")
    await seed.tag(widget, football)
    await seed.tag(widget, hockey)

    async with engine.session() as session:
        views = await RelationAggregator(session).aggregate([widget])

    assert len(views) == 1
    view = views[0]
    assert sorted(view.developer_ids) == sorted([owner.id, dev2.id, dev3.id])
    assert [(c.id, c.name, c.hex_code) for c in view.categories] == [
        (football.id, "Football", "#00ff00"),
        (hockey.id, "Hockey", "#0000ff"),
    ]


@pytest.mark.asyncio
async def test_widget_without_relations_gets_empty_lists(engine, seed):
    widget = await seed.widget("Bare")

    async with engine.session() as session:
        view = await RelationAggregator(session).aggregate_one(widget)

    assert view.developer_ids == []
    assert view.categories == []
    assert view.model_dump(by_alias=True)["categories"] == []


@pytest.mark.asyncio
async def test_input_order_preserved(engine, seed):
    a, b, c = await seed.widget("A"), await seed.widget("B"), await seed.widget("C")

    async with engine.session() as session:
        views = await RelationAggregator(session).aggregate([c, a, b])

    assert [v.name for v in views] == ["C", "A", "B"]


@pytest.mark.asyncio
async def test_empty_input(engine):
    async with engine.session() as session:
        assert await RelationAggregator(session).aggregate([]) == []

from __future__ import annotations

import pytest
from sqlalchemy import text

from widget_access.exceptions import NotFoundError, ValidationError
from widget_access.widgets.visibility import ANONYMOUS, Viewer, VisibilityResolver


async def _visible_ids(engine, viewer_id=None, **filters) -> list[int]:
    async with engine.session() as session:
        views = await VisibilityResolver(session).resolve(viewer_id, **filters)
    return [v.id for v in views]


@pytest.mark.asyncio
async def test_public_and_null_visibility_listed_for_everyone(engine, seed):
    team = await seed.team()
    viewer = await seed.user(team=team)
    public = await seed.widget("Public", visibility="public")
    shouting = await seed.widget("Shouting", visibility="PUBLIC")
    unset = await seed.widget("Unset", visibility=None)

    expected = [public.id, shouting.id, unset.id]
    assert await _visible_ids(engine) == expected
    assert await _visible_ids(engine, viewer.id) == expected
    assert await _visible_ids(engine, str(viewer.id)) == expected


@pytest.mark.asyncio
async def test_private_ungranted_unowned_widget_is_hidden(engine, seed):
    team = await seed.team()
    viewer = await seed.user(team=team)
    stranger = await seed.user()
    await seed.widget("Secret", visibility="private", owner=stranger)

    assert await _visible_ids(engine, viewer.id) == []
    assert await _visible_ids(engine) == []


@pytest.mark.asyncio
async def test_owner_sees_own_private_widget_in_any_case(engine, seed):
    owner = await seed.user()
    mine = await seed.widget("Mine", visibility="Private", owner=owner)

    assert await _visible_ids(engine, owner.id) == [mine.id]


@pytest.mark.asyncio
async def test_team_grant_reaches_members_but_not_other_teams(engine, seed):
    blue = await seed.team("Blue")
    red = await seed.team("Red")
    blue_league = await seed.user(role="league", team=blue)
    blue_master = await seed.user(role="master", team=blue)
    red_league = await seed.user(role="league", team=red)
    owner = await seed.user()
    widget = await seed.widget("Scores", visibility="private", owner=owner)
    await seed.grant(widget, blue)

    assert await _visible_ids(engine, blue_league.id) == [widget.id]
    assert await _visible_ids(engine, blue_master.id) == [widget.id]
    assert await _visible_ids(engine, red_league.id) == []


@pytest.mark.asyncio
async def test_widget_developer_ignores_team_grants(engine, seed):
    team = await seed.team()
    dev = await seed.user(role="widget developer", team=team)
    other = await seed.user()
    granted = await seed.widget("Granted", visibility="private", owner=other)
    own = await seed.widget("Own", visibility="private", owner=other)
    await seed.developer(own, dev)
    public = await seed.widget("Public")
    await seed.grant(granted, team)

    assert await _visible_ids(engine, dev.id) == [own.id, public.id]


@pytest.mark.asyncio
async def test_role_spelling_is_normalized(engine, seed):
    team = await seed.team()
    dev = await seed.user(role="  Widget  Developer ", team=team)
    widget = await seed.widget("Granted", visibility="private")
    await seed.grant(widget, team)

    assert await _visible_ids(engine, dev.id) == []


@pytest.mark.asyncio
async def test_granted_public_widget_is_not_duplicated(engine, seed):
    team = await seed.team()
    viewer = await seed.user(team=team)
    widget = await seed.widget("Open", visibility="public")
    await seed.grant(widget, team)

    assert await _visible_ids(engine, viewer.id) == [widget.id]


@pytest.mark.asyncio
async def test_owned_and_team_granted_private_widget_returned_once(engine, seed):
    team = await seed.team()
    viewer = await seed.user(role="league", team=team)
    widget = await seed.widget("Both", visibility="private", owner=viewer)
    await seed.grant(widget, team)

    assert await _visible_ids(engine, viewer.id) == [widget.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["abc", "", "-3", "0", "1.5", "12abc"])
async def test_malformed_viewer_id_reads_as_anonymous(engine, seed, raw):
    owner = await seed.user()
    public = await seed.widget("Public")
    await seed.widget("Secret", visibility="private", owner=owner)

    assert await _visible_ids(engine, raw) == [public.id]


@pytest.mark.asyncio
async def test_unknown_viewer_sees_public_only(engine, seed):
    public = await seed.widget("Public")
    await seed.widget("Secret", visibility="private")

    assert await _visible_ids(engine, 9999) == [public.id]


@pytest.mark.asyncio
async def test_failed_viewer_lookup_keeps_ownership(engine, seed):
    team = await seed.team()
    viewer = await seed.user(team=team)
    owned = await seed.widget("Owned", visibility="private", owner=viewer)
    granted = await seed.widget("Granted", visibility="private")
    await seed.grant(granted, team)

    async with engine.engine.begin() as conn:
        await conn.execute(text("DROP TABLE users"))

    async with engine.session() as session:
        resolver = VisibilityResolver(session)
        loaded = await resolver.load_viewer(viewer.id)
        assert loaded == Viewer(user_id=viewer.id)

    assert await _visible_ids(engine, viewer.id) == [owned.id]


@pytest.mark.asyncio
async def test_load_viewer_without_id_is_anonymous(engine):
    async with engine.session() as session:
        assert await VisibilityResolver(session).load_viewer(None) is ANONYMOUS


@pytest.mark.asyncio
async def test_name_filter_is_case_insensitive_substring(engine, seed):
    await seed.widget("League Standings")
    match = await seed.widget("Player STATS")
    await seed.widget("Schedule")

    assert await _visible_ids(engine, name="stats") == [match.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("needle", ["%", "_", "\\"])
async def test_name_filter_treats_wildcards_literally(engine, seed, needle):
    await seed.widget("Alpha")
    await seed.widget("Beta")
    assert await _visible_ids(engine, name=needle) == []

    literal = await seed.widget(f"50{needle} off")
    assert await _visible_ids(engine, name=needle) == [literal.id]


@pytest.mark.asyncio
async def test_category_filter_matches_any_given_category(engine, seed):
    football = await seed.category("Football")
    hockey = await seed.category("Hockey")
    tennis = await seed.category("Tennis")
    a = await seed.widget("A")
    b = await seed.widget("B")
    c = await seed.widget("C")
    await seed.tag(a, football)
    await seed.tag(b, hockey)
    await seed.tag(b, football)
    await seed.tag(c, tennis)

    assert await _visible_ids(engine, categories=[football.id]) == [a.id, b.id]
    assert await _visible_ids(engine, categories=[hockey.id, tennis.id]) == [b.id, c.id]


@pytest.mark.asyncio
async def test_filters_do_not_widen_access(engine, seed):
    football = await seed.category("Football")
    hidden = await seed.widget("Hidden stats", visibility="private")
    await seed.tag(hidden, football)

    assert await _visible_ids(engine, name="stats", categories=[football.id]) == []


@pytest.mark.asyncio
async def test_pagination_is_stable_by_id(engine, seed):
    ids = [(await seed.widget(f"W{i}")).id for i in range(5)]

    assert await _visible_ids(engine, page=1, limit=2) == ids[:2]
    assert await _visible_ids(engine, page=2, limit=2) == ids[2:4]
    assert await _visible_ids(engine, page=3, limit=2) == ids[4:]
    assert await _visible_ids(engine, limit=3) == ids[:3]


@pytest.mark.asyncio
async def test_get_hides_invisible_widget_as_not_found(engine, seed):
    owner = await seed.user()
    secret = await seed.widget("Secret", visibility="private", owner=owner)

    async with engine.session() as session:
        resolver = VisibilityResolver(session)
        view = await resolver.get(secret.id, owner.id)
        assert view.id == secret.id and view.developer_ids == [owner.id]
        with pytest.raises(NotFoundError):
            await resolver.get(secret.id, None)
        with pytest.raises(NotFoundError):
            await resolver.get(424242, owner.id)
        with pytest.raises(ValidationError):
            await resolver.get("nope", owner.id)

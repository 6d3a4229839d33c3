"""
Tests for entity listings: visibility, filters, ordering and pagination
"""

from datetime import date, datetime

import pytest

from eln.domain.exceptions import IllegalActionException, ImproperActionException
from eln.entities import Experiments, Items, Templates
from eln.models import TeamEvent, TeamGroup, TeamGroupMember


def ids(rows):
    return [row["id"] for row in rows]


class TestVisibility:
    """Test which rows a user gets in a listing"""

    def test_team_members_see_team_rows(self, db_session, bob, carol, new_experiment):
        own = new_experiment(bob)
        private = new_experiment(bob, canread="user")
        from_carol = new_experiment(carol)

        assert set(ids(Experiments(db_session, bob).read_show())) == {own, private, from_carol}
        assert set(ids(Experiments(db_session, carol).read_show())) == {own, from_carol}

    def test_other_team_rows_are_not_listed(self, db_session, bob, dave, new_experiment):
        new_experiment(bob)
        new_experiment(bob, canread="public")
        from_dave = new_experiment(dave)

        assert ids(Experiments(db_session, dave).read_show()) == [from_dave]

    def test_group_rows(self, db_session, bob, carol, lena, new_experiment):
        group = TeamGroup(name="Cloning", team=1)
        db_session.add(group)
        db_session.flush()
        db_session.add(TeamGroupMember(userid=carol.userid, groupid=group.id))
        db_session.commit()

        entity_id = new_experiment(bob, canread=str(group.id))

        assert ids(Experiments(db_session, carol).read_show()) == [entity_id]
        assert ids(Experiments(db_session, lena).read_show()) == []

    def test_organization_rows(self, db_session, bob, carol, new_experiment):
        entity_id = new_experiment(bob, canread="organization")
        assert ids(Experiments(db_session, carol).read_show()) == [entity_id]

    def test_anonymous_sees_public_rows_only(self, db_session, bob, anon, new_experiment):
        new_experiment(bob)
        new_experiment(bob, canread="organization")
        public = new_experiment(bob, canread="public")

        rows = Experiments(db_session, anon).read_show()
        assert ids(rows) == [public]
        # every listed row can be opened
        for entity_id in ids(rows):
            assert Experiments(db_session, anon, entity_id).read()["id"] == entity_id

    def test_templates_cannot_be_listed(self, db_session, bob):
        with pytest.raises(IllegalActionException):
            Templates(db_session, bob).read_show()


class TestFilters:
    """Test listing filters"""

    def test_owner(self, db_session, bob, carol, new_experiment):
        new_experiment(bob)
        from_carol = new_experiment(carol)

        entity = Experiments(db_session, bob)
        entity.add_filter("owner", carol.userid)
        assert ids(entity.read_show()) == [from_carol]

    def test_category(self, db_session, bob, new_experiment):
        new_experiment(bob)
        success = new_experiment(bob, category=2)

        entity = Experiments(db_session, bob)
        entity.add_filter("categoryt.id", "2")
        rows = entity.read_show()
        assert ids(rows) == [success]
        assert rows[0]["category"] == "Success"

    def test_tag(self, db_session, bob, new_experiment):
        tagged = new_experiment(bob)
        new_experiment(bob)
        Experiments(db_session, bob, tagged).tags.create("elisa")

        entity = Experiments(db_session, bob)
        entity.add_filter("tags.tag", "elisa")
        assert ids(entity.read_show()) == [tagged]

    def test_locked(self, db_session, bob, new_experiment):
        locked = new_experiment(bob, locked=True, lockedby=2)
        new_experiment(bob)

        entity = Experiments(db_session, bob)
        entity.add_filter("entity.locked", "true")
        assert ids(entity.read_show()) == [locked]

    def test_none_is_ignored(self, db_session, bob):
        entity = Experiments(db_session, bob)
        entity.add_filter("owner", None)
        assert entity.filters == []

    def test_unknown_column(self, db_session, bob):
        with pytest.raises(ImproperActionException):
            Experiments(db_session, bob).add_filter("body; DROP TABLE users", 1)

    def test_bad_value(self, db_session, bob, new_experiment):
        new_experiment(bob)
        entity = Experiments(db_session, bob)
        entity.add_filter("owner", "bob")
        with pytest.raises(ImproperActionException):
            entity.read_show()

    def test_title(self, db_session, bob, new_experiment):
        match = new_experiment(bob, title="Western blot")
        new_experiment(bob, title="Cloning")

        entity = Experiments(db_session, bob)
        entity.title_filter = "WESTERN"
        assert ids(entity.read_show()) == [match]

    def test_query_matches_body_and_id(self, db_session, bob, new_experiment):
        in_body = new_experiment(bob, body="<p>buffer pH 7.4</p>")
        other = new_experiment(bob)

        entity = Experiments(db_session, bob)
        entity.query_filter = "pH 7.4"
        assert ids(entity.read_show()) == [in_body]

        entity = Experiments(db_session, bob)
        entity.query_filter = str(other)
        assert other in ids(entity.read_show())

    def test_date(self, db_session, bob, new_experiment):
        old = new_experiment(bob, date=date(2020, 6, 15))
        new_experiment(bob)

        entity = Experiments(db_session, bob)
        entity.date_filter = "20200601-20200630"
        assert ids(entity.read_show()) == [old]

    def test_id_filter(self, db_session, bob, new_experiment):
        first = new_experiment(bob)
        new_experiment(bob)

        entity = Experiments(db_session, bob)
        entity.id_filter = [first]
        assert ids(entity.read_show()) == [first]

        entity.id_filter = []
        assert entity.read_show() == []


class TestOrdering:
    """Test ORDER BY resolution"""

    def test_default_is_newest_first(self, db_session, bob, new_experiment):
        first = new_experiment(bob)
        second = new_experiment(bob)
        assert ids(Experiments(db_session, bob).read_show()) == [second, first]

    def test_title_ascending(self, db_session, bob, new_experiment):
        b = new_experiment(bob, title="B")
        a = new_experiment(bob, title="A")

        entity = Experiments(db_session, bob)
        entity.order = "title"
        entity.sort = "asc"
        assert ids(entity.read_show()) == [a, b]

    def test_rating_only_for_items(self, db_session, bob, new_item):
        low = new_item(bob, rating=1)
        high = new_item(bob, rating=5)

        items = Items(db_session, bob)
        items.order = "rating"
        assert ids(items.read_show()) == [high, low]

        experiments = Experiments(db_session, bob)
        experiments.order = "rating"
        with pytest.raises(ImproperActionException):
            experiments.read_show()

    @pytest.mark.parametrize(
        "order,sort",
        [("body", "DESC"), ("title; --", "ASC"), ("date", "sideways"), ("date", "")],
    )
    def test_invalid(self, db_session, bob, order, sort):
        entity = Experiments(db_session, bob)
        entity.order = order
        entity.sort = sort
        with pytest.raises(ImproperActionException):
            entity.read_show()


class TestPagination:
    def test_limit_fetches_one_extra_row(self, db_session, bob, new_experiment):
        for _ in range(4):
            new_experiment(bob)

        entity = Experiments(db_session, bob)
        entity.set_limit(2)
        assert entity.limit == 3
        assert len(entity.read_show()) == 3

    def test_offset(self, db_session, bob, new_experiment):
        created = [new_experiment(bob) for _ in range(3)]

        entity = Experiments(db_session, bob)
        entity.order = "id"
        entity.sort = "ASC"
        entity.set_limit(5)
        entity.set_offset(1)
        assert ids(entity.read_show()) == created[1:]


class TestRowContent:
    """Test the computed columns of listed rows"""

    def test_show_columns(self, db_session, bob, new_experiment):
        new_experiment(bob)
        row = Experiments(db_session, bob).read_show()[0]

        assert row["fullname"] == "Bob Brown"
        assert row["category"] == "Running"
        assert row["color"] == "29aeb9"
        assert row["timestamped"] is False
        assert row["has_comment"] is False
        assert row["has_attachment"] is False
        assert row["next_step"] is None
        assert "body" not in row
        assert "tags" not in row

    def test_extended_rows_carry_tags(self, db_session, bob, new_experiment):
        entity = Experiments(db_session, bob, new_experiment(bob))
        first = entity.tags.create("elisa")
        second = entity.tags.create("mouse")

        row = Experiments(db_session, bob).read_show(extended=True)[0]
        assert row["body"] == "<p>Common</p>"
        assert row["tags"] == "elisa|mouse"
        assert row["tags_id"] == f"{first},{second}"

    def test_next_step(self, db_session, bob, new_experiment):
        entity = Experiments(db_session, bob, new_experiment(bob))
        first = entity.steps.create("Coat plate")
        entity.steps.create("Block")

        assert Experiments(db_session, bob).read_show()[0]["next_step"] == "Coat plate"

        entity.steps.finish(first)
        assert Experiments(db_session, bob).read_show()[0]["next_step"] == "Block"

    def test_comment_and_attachment_flags(self, db_session, bob, carol, new_experiment):
        entity_id = new_experiment(bob)
        Experiments(db_session, carol, entity_id).comments.create("Looks good")
        Experiments(db_session, bob, entity_id).uploads.create("gel.png", "ab/gel.png")

        row = Experiments(db_session, bob).read_show()[0]
        assert row["has_comment"] is True
        assert row["recent_comment"] is not None
        assert row["has_attachment"] is True

    def test_items_bookings(self, db_session, bob, new_item):
        microscope = new_item(bob, tpl=2)
        antibody = new_item(bob)
        event = TeamEvent(team=1, item=microscope, start=datetime(2024, 1, 1, 9), userid=2)
        db_session.add(event)
        db_session.commit()

        rows = {row["id"]: row for row in Items(db_session, bob).read_show()}
        assert rows[microscope]["bookable"] is True
        assert rows[microscope]["events_id"] == str(event.id)
        assert rows[antibody]["bookable"] is False
        assert rows[antibody]["events_id"] is None

import uuid

import pytest

from fiberplant.errors import NotFoundError, PersistenceError
from fiberplant.models.plant import FiberCable, GisLabel, NetworkPoint
from fiberplant.schemas.plant import CableMetadata, LabelMetadata
from fiberplant.services.cable_plant import CablePlant
from fiberplant.services.storage import SqlAlchemyPlantStorage

POINTS = [(6.5244, 3.3792), (6.5250, 3.3800), (6.5262, 3.3811)]


class FailingSecondHalfStorage(SqlAlchemyPlantStorage):
    """Refuses to create cables while a transaction is open."""

    def create_cable(self, cable):
        if self._depth:
            raise PersistenceError("Failed to save FiberCable")
        return super().create_cable(cable)


def test_create_cable_persists_coordinates(sql_plant, db_session):
    cable = sql_plant.create_cable(POINTS, CableMetadata(name="Ikeja Feeder"))
    db_session.expire_all()
    stored = db_session.get(FiberCable, cable.id)
    assert stored.coordinates == [list(point) for point in POINTS]
    assert stored.length_meters == cable.length_meters
    assert stored.created_at is not None


def test_update_unknown_cable(sql_storage):
    with pytest.raises(NotFoundError):
        sql_storage.update_cable(uuid.uuid4(), {"name": "Nope"})


def test_delete_missing_returns_false(sql_storage):
    assert sql_storage.delete_cable(uuid.uuid4()) is False
    assert sql_storage.delete_label(uuid.uuid4()) is False


def test_trim_commits(sql_plant, db_session):
    cable = sql_plant.create_cable(POINTS, CableMetadata(name="Ikeja Feeder"))
    sql_plant.trim_from_end(cable.id, 1)
    db_session.expire_all()
    assert len(db_session.get(FiberCable, cable.id).coordinates) == 2


def test_split_commits_both_halves(sql_plant, db_session):
    cable = sql_plant.create_cable(POINTS, CableMetadata(name="Ikeja Feeder"))
    result = sql_plant.split_at(cable.id, 1)
    db_session.expire_all()
    names = sorted(c.name for c in db_session.query(FiberCable).all())
    assert names == ["Ikeja Feeder (Part 1)", "Ikeja Feeder (Part 2)"]
    assert result.first.coordinates[-1] == result.second.coordinates[0]


def test_split_rolls_back_when_second_half_fails(db_session):
    storage = FailingSecondHalfStorage(db_session)
    plant = CablePlant(storage)
    cable = plant.create_cable(POINTS, CableMetadata(name="Ikeja Feeder"))
    original_length = cable.length_meters

    with pytest.raises(PersistenceError):
        plant.split_at(cable.id, 1)

    db_session.expire_all()
    rows = db_session.query(FiberCable).all()
    assert len(rows) == 1
    assert rows[0].name == "Ikeja Feeder"
    assert len(rows[0].coordinates) == 3
    assert rows[0].length_meters == original_length


def test_database_constraint_surfaces_as_persistence_error(sql_storage, db_session):
    point = NetworkPoint(
        id=uuid.uuid4(),
        name="Broken FAT",
        latitude=0.0,
        longitude=0.0,
        capacity=0,
        used_ports=0,
        available_signals=[],
        assigned_customer_ids=[],
    )
    with pytest.raises(PersistenceError):
        sql_storage.create_network_point(point)
    assert db_session.query(NetworkPoint).count() == 0


def test_transaction_commits_once_at_the_outermost_block(sql_storage, db_session):
    plant = CablePlant(sql_storage)
    with sql_storage.transaction():
        plant.create_label((6.45, 3.39), LabelMetadata(name="Mast"))
        with sql_storage.transaction():
            plant.create_label((6.46, 3.40), LabelMetadata(name="Hut"))
    db_session.expire_all()
    assert db_session.query(GisLabel).count() == 2


def test_transaction_rolls_back_everything(sql_storage, db_session):
    plant = CablePlant(sql_storage)
    with pytest.raises(RuntimeError):
        with sql_storage.transaction():
            plant.create_label((6.45, 3.39), LabelMetadata(name="Mast"))
            raise RuntimeError("abort")
    assert db_session.query(GisLabel).count() == 0


def test_load_state_reads_every_table(sql_plant):
    sql_plant.create_cable(POINTS, CableMetadata(name="Ikeja Feeder"))
    sql_plant.create_label((0.0, 0.0), LabelMetadata(name="B"))
    sql_plant.create_label((0.0, 0.0), LabelMetadata(name="A"))
    state = sql_plant.load_state()
    assert [cable.name for cable in state.cables] == ["Ikeja Feeder"]
    assert sorted(label.name for label in state.labels) == ["A", "B"]
    assert state.network_points == []

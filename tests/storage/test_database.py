from sqlalchemy.pool import StaticPool

from prize_service.domain import PrizeRuleType
from prize_service.storage.database import create_db_engine, init_db, make_session_factory
from prize_service.storage.repository import RuleRepository


def test_in_memory_engine_is_shared_across_sessions() -> None:
    engine = create_db_engine("sqlite:///:memory:")
    assert isinstance(engine.pool, StaticPool)
    init_db(engine)
    session_factory = make_session_factory(engine)

    with session_factory() as first:
        created = RuleRepository(first).create(
            name="Split", rule_type=PrizeRuleType.EQUAL_SHARE, config={"total_prize": 100}
        )

    with session_factory() as second:
        assert RuleRepository(second).get(created.id) is not None

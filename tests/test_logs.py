import pytest
from loguru import logger as _logger
from kvfactory import Factory
from kvfactory.configs import KVFactorySettings
from kvfactory.utils.logs import Logger, logger, logger_level

from .conftest import FakeConnector


@pytest.fixture
def records():
    messages = []
    handler_id = _logger.add(
        lambda message: messages.append(message.record),
        level = 'DEBUG',
        filter = lambda record: record['extra'].get('name', '').startswith('kvfactory'),
    )
    yield messages
    _logger.remove(handler_id)


@pytest.fixture
def restore_level():
    level = logger.level
    yield logger
    logger.set_level(level)


def test_records_below_the_level_are_dropped(records):
    log = Logger('kvfactory.test', 'INFO')
    log.debug('dropped')
    log.info('kept')
    log.warning('also kept')
    assert [r['message'] for r in records] == ['kept', 'also kept']
    assert records[0]['extra']['name'] == 'kvfactory.test'


def test_set_level(records):
    log = Logger('kvfactory.test', 'WARNING')
    log.info('dropped')
    log.set_level('debug')
    log.debug('kept')
    assert [r['message'] for r in records] == ['kept']
    assert records[0]['function'] == 'test_set_level'


@pytest.mark.asyncio
async def test_connect_is_quiet_by_default(records, restore_level, make_client_class):
    factory = Factory(connector = FakeConnector(), client_class = make_client_class(), timeout = -1)
    logger.set_level('INFO')
    await factory.create_client('redis://:secret@cache.internal/1')
    assert records == []


def test_debug_setting_lowers_the_level(restore_level):
    config = KVFactorySettings(debug = True)
    assert logger.level == 'DEBUG'
    config.configure(debug = False)
    assert logger.level == logger_level


@pytest.mark.asyncio
async def test_debug_logs_each_step(records, restore_level, make_client_class):
    factory = Factory(connector = FakeConnector(), client_class = make_client_class(), timeout = -1)
    logger.set_level('DEBUG')
    await factory.create_client('redis://:secret@cache.internal/1')
    messages = [r['message'] for r in records]
    assert 'Connecting to redis://:***@cache.internal/1' in messages
    assert 'Running AUTH against redis://:***@cache.internal/1' in messages
    assert 'Running SELECT against redis://:***@cache.internal/1' in messages
    assert not any('secret' in m for m in messages)

"""Pytest configuration and fixtures for huestatus tests."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest


def make_response(json_data=None, status_code=200, invalid_json=False):
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if invalid_json:
        response.json.side_effect = ValueError('Expecting value')
    else:
        response.json.return_value = json_data
    return response


def light_payload(name='Desk', reachable=True, colorgamut=True, ct=True, on=True, bri=200):
    """A GET /lights/<id> body."""
    control = {}
    if colorgamut:
        control['colorgamut'] = [[0.6915, 0.3083], [0.17, 0.7], [0.1532, 0.0475]]
    if ct:
        control['ct'] = {'min': 153, 'max': 500}
    return {
        'name': name,
        'type': 'Extended color light',
        'modelid': 'LCT015',
        'manufacturername': 'Signify Netherlands B.V.',
        'state': {
            'on': on,
            'bri': bri,
            'hue': 8418,
            'sat': 140,
            'xy': [0.4573, 0.41],
            'ct': 366,
            'alert': 'none',
            'colormode': 'ct',
            'mode': 'homeautomation',
            'reachable': reachable,
        },
        'capabilities': {'control': control},
    }


def scene_payload(name='huestatus-success', lights=('1', '2'), locked=False):
    """A GET /scenes/<id> body."""
    return {
        'name': name,
        'lights': list(lights),
        'owner': 'abc123',
        'recycle': True,
        'locked': locked,
        'lastupdated': '2024-05-01T10:00:00',
        'version': 2,
    }


def bridge_config_payload(name='Philips hue', bridgeid='001788FFFE123456'):
    return {
        'name': name,
        'bridgeid': bridgeid,
        'modelid': 'BSB002',
        'swversion': '1962097030',
        'apiversion': '1.62.0',
        'mac': '00:17:88:12:34:56',
        'ipaddress': '192.168.1.20',
    }


def capabilities_payload(scenes_available=150, scenes_total=200):
    return {
        'lights': {'available': 40, 'total': 63},
        'scenes': {'available': scenes_available, 'total': scenes_total},
        'groups': {'available': 60, 'total': 64},
    }


def bridge_error(code, description='error', address='/'):
    return [{'error': {'type': code, 'address': address, 'description': description}}]


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def session():
    """A requests.Session stand-in whose request() is configured per test."""
    mock_session = MagicMock()
    mock_session.headers = {}
    return mock_session


@pytest.fixture
def no_sleep(monkeypatch):
    """Make time.sleep instant and record the requested delays."""
    delays = []
    monkeypatch.setattr('time.sleep', lambda seconds: delays.append(seconds))
    return delays


class FakeClock:
    """Simulated time.monotonic/time.sleep; sleeping advances the clock."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr('time.monotonic', fake.monotonic)
    monkeypatch.setattr('time.sleep', fake.sleep)
    return fake

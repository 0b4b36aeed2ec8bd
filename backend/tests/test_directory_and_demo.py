import pytest

from blogapi import registry
from blogapi.services import InMemoryUserService
from blogapi.utils.calculator import InvalidOperatorError, calculate


@pytest.fixture()
def directory(monkeypatch):
    store = InMemoryUserService()
    monkeypatch.setattr("blogapi.main._user_directory", store)
    return store


def test_directory_is_seeded(client, directory):
    r = client.get('/api/directory/users')
    assert r.status_code == 200
    assert sorted(u['id'] for u in r.json()) == [1, 2]
    jane = client.get('/api/directory/users/2').json()
    assert jane['roles'] == ['USER', 'ADMIN']


def test_directory_create_and_missing(client, directory):
    r = client.post('/api/directory/users', json={'id': 3, 'name': 'Kim', 'email': 'kim@example.com', 'roles': ['USER']})
    assert r.status_code == 201
    assert directory.get_user_by_id(3).name == 'Kim'
    assert client.get('/api/directory/users/99').status_code == 404


def test_directory_create_replaces_existing_id():
    store = InMemoryUserService()
    from blogapi.schemas import UserDTO
    store.create_user(UserDTO(id=1, name='Replaced', email='r@example.com'))
    assert store.get_user_by_id(1).name == 'Replaced'
    assert len(store.get_users()) == 2
    assert store.get_user_by_id(5) is None


def test_calculator_add(client):
    r = client.get('/calculator', params={'a': 3, 'b': 5, 'op': 'add'})
    assert r.status_code == 200
    assert r.json() == {'result': 8}


def test_calculator_division_by_zero_is_an_error(client):
    r = client.get('/calculator', params={'a': 4, 'b': 0, 'op': 'div'})
    assert r.status_code == 400
    assert 'error' in r.json()
    assert 'result' not in r.json()


def test_calculator_invalid_operator(client):
    r = client.get('/calculator', params={'a': 1, 'b': 2, 'op': 'pow'})
    assert r.status_code == 400
    assert r.json() == {'error': 'Invalid operator: pow'}


def test_calculate_truncates_toward_zero():
    assert calculate(7, 2, 'div') == 3
    assert calculate(-7, 2, 'div') == -3
    assert calculate(7, -2, 'div') == -3
    assert calculate(6, 3, 'sub') == 3
    assert calculate(6, 3, 'mul') == 18
    with pytest.raises(ZeroDivisionError):
        calculate(1, 0, 'div')
    with pytest.raises(InvalidOperatorError):
        calculate(1, 1, 'mod')


def test_greeting_and_system_info(client):
    g = client.get('/greeting', params={'name': 'Ann'}).json()
    assert g['message'] == 'Hello, Ann!'
    assert client.get('/greeting').json()['message'] == 'Hello, World!'
    info = client.get('/system-info').json()
    assert {'pythonVersion', 'osName', 'availableProcessors', 'maxMemory', 'timestamp'} <= set(info)


def test_create_dynamic_uses_registry(client):
    r = client.get('/create-dynamic', params={'className': 'ProductDTO'})
    assert r.status_code == 200
    assert r.json() == {'id': 0, 'name': '', 'price': 0.0, 'description': '', 'category': ''}
    qualified = client.get('/create-dynamic', params={'className': 'com.example.nativedemo.dto.UserDTO'})
    assert qualified.json()['roles'] == []


def test_unknown_type_is_404(client):
    r = client.get('/create-dynamic', params={'className': 'os.system'})
    assert r.status_code == 404
    assert r.json() == {'error': 'Unknown type: os.system'}
    assert client.get('/api/reflection/inspect-class', params={'className': 'Nope'}).status_code == 404


def test_inspect_class(client):
    r = client.get('/api/reflection/inspect-class', params={'className': 'UserDTO'})
    assert r.status_code == 200
    body = r.json()
    assert body['className'] == 'UserDTO'
    assert body['fields'] == ['id', 'name', 'email', 'roles']
    assert body['isInterface'] is False
    assert body['superclass'] == 'ApiModel'


def test_registry_does_not_resolve_arbitrary_names():
    with pytest.raises(registry.UnknownTypeError):
        registry.create_instance('builtins.dict')


def test_request_id_header_exists(client):
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.status_code == 200
    assert r.headers['X-Request-ID'] == 'abc123'
    assert 'X-Request-ID' in client.get('/api/users').headers

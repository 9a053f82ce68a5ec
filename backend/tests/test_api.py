from catalog import repositories
from catalog.errors import StorageError


def _create_cs(client):
    r = client.post('/departments', json={'title': 'Computer Science', 'description': 'CS dept'})
    assert r.status_code == 201
    return r.json()


def test_index_and_health(client):
    r = client.get('/')
    assert r.status_code == 200
    assert {'href': '/departments', 'methods': ['GET', 'POST']} in r.json()
    h = client.get('/health')
    assert h.status_code == 200
    assert 'X-Request-ID' in h.headers


def test_request_id_is_propagated(client):
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.headers['X-Request-ID'] == 'abc123'


def test_department_lifecycle(client):
    assert client.get('/departments').json() == []
    created = _create_cs(client)
    assert created['slug'] == 'computer-science'
    assert created['description'] == 'CS dept'

    r = client.get('/departments/computer-science')
    assert r.status_code == 200
    assert r.json()['id'] == created['id']

    # slug stays stable when the title changes
    p = client.patch('/departments/computer-science', json={'title': 'Computing'})
    assert p.status_code == 200
    assert p.json()['title'] == 'Computing'
    assert p.json()['slug'] == 'computer-science'

    assert len(client.get('/departments').json()) == 1
    d = client.delete('/departments/computer-science')
    assert d.status_code == 204
    assert client.get('/departments/computer-science').status_code == 404
    assert client.delete('/departments/computer-science').status_code == 404


def test_create_department_validation(client):
    assert client.post('/departments', json={'description': 'no title'}).status_code == 400
    assert client.post('/departments', json={'title': '', 'description': 'x'}).status_code == 400
    r = client.post('/departments', json={'title': '!!!', 'description': 'x'})
    assert r.status_code == 400
    _create_cs(client)
    dup = client.post('/departments', json={'title': 'computer science', 'description': 'again'})
    assert dup.status_code == 400
    assert 'already exists' in dup.json()['error']


def test_patch_department_requires_fields(client):
    _create_cs(client)
    r = client.patch('/departments/computer-science', json={})
    assert r.status_code == 400
    assert r.json()['error'] == 'nothing to update'
    r2 = client.patch('/departments/computer-science', json={'title': None})
    assert r2.status_code == 400
    assert client.patch('/departments/nope', json={'title': 'x'}).status_code == 404


def test_course_lifecycle(client):
    _create_cs(client)
    base = '/departments/computer-science/courses'
    assert client.get(base).json() == []

    payload = {'course_id': 'TOL101', 'title': 'Intro', 'units': 6, 'semester': 'Fall', 'level': '', 'url': ''}
    r = client.post(base, json=payload)
    assert r.status_code == 201
    course = r.json()
    assert course['course_id'] == 'TOL101'
    assert course['semester'] == 'Fall'
    assert course['units'] == 6

    g = client.get(f'{base}/TOL101')
    assert g.status_code == 200
    assert g.json()['title'] == 'Intro'

    p = client.patch(f'{base}/TOL101', json={'units': 7.5, 'semester': 'Year-round'})
    assert p.status_code == 200
    assert p.json()['units'] == 7.5
    assert p.json()['semester'] == 'Year-round'

    assert len(client.get(base).json()) == 1
    assert client.delete(f'{base}/TOL101').status_code == 204
    assert client.get(f'{base}/TOL101').status_code == 404
    assert client.delete(f'{base}/TOL101').status_code == 404


def test_course_validation(client):
    _create_cs(client)
    base = '/departments/computer-science/courses'
    bad_semester = {'course_id': 'TOL101', 'title': 'Intro', 'units': 6, 'semester': 'Winter'}
    assert client.post(base, json=bad_semester).status_code == 400
    negative = {'course_id': 'TOL101', 'title': 'Intro', 'units': -1, 'semester': 'Fall'}
    assert client.post(base, json=negative).status_code == 400

    ok = {'course_id': 'TOL101', 'title': 'Intro', 'units': 6, 'semester': 'Fall'}
    assert client.post(base, json=ok).status_code == 201
    assert client.post(base, json=ok).status_code == 400
    assert client.patch(f'{base}/TOL101', json={}).status_code == 400
    assert client.patch(f'{base}/TOL101', json={'semester': None}).status_code == 400
    # optional columns can be cleared
    cleared = client.patch(f'{base}/TOL101', json={'units': None})
    assert cleared.status_code == 200
    assert cleared.json()['units'] is None


def test_courses_of_missing_department_404(client):
    assert client.get('/departments/nope/courses').status_code == 404
    body = {'course_id': 'X1', 'title': 'X', 'semester': 'Fall'}
    assert client.post('/departments/nope/courses', json=body).status_code == 404
    assert client.get('/departments/nope/courses/X1').status_code == 404


def test_storage_failure_returns_generic_500(client, monkeypatch):
    async def boom(self):
        raise StorageError()

    monkeypatch.setattr(repositories.DepartmentRepository, 'list', boom)
    r = client.get('/departments')
    assert r.status_code == 500
    assert r.json() == {'error': 'Internal server error'}

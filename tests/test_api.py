from whiskwillow.extensions import db
from whiskwillow.models import ContactSubmission


def test_end_to_end_contact_flow(client, valid_payload, dispatched):
    response = client.post('/api/contact', json={
        'name': 'Jo Lee',
        'email': 'JO@Example.COM',
        'message': 'Need a cake for Saturday please',
    })

    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['timestamp']
    contact_id = body['id']

    fetched = client.get(f'/api/contact/{contact_id}').get_json()['data']
    assert fetched['email'] == 'jo@example.com'
    assert fetched['status'] == 'new'

    updated = client.put(f'/api/contact/{contact_id}', json={'status': 'replied'})
    assert updated.status_code == 200
    assert updated.get_json()['data']['status'] == 'replied'
    assert updated.get_json()['message'] == 'Contact updated successfully'
    replied_at = updated.get_json()['data']['updatedAt']

    bulk = client.post('/api/bulk/contacts', json={'ids': [contact_id], 'action': 'mark-read'})
    assert bulk.status_code == 200
    assert bulk.get_json() == {
        'success': True,
        'message': 'Successfully marked as read 1 contacts',
        'affected': 1,
    }
    after_bulk = client.get(f'/api/contact/{contact_id}').get_json()['data']
    assert after_bulk['status'] == 'read'
    assert after_bulk['updatedAt'] > replied_at


def test_submit_records_request_provenance(client, valid_payload, dispatched):
    response = client.post('/api/contact', json=valid_payload, headers={
        'User-Agent': 'Mozilla/5.0 test',
        'Referer': 'https://sharaywhiskandwillow.netlify.app/contact',
    }, environ_base={'REMOTE_ADDR': '198.51.100.4'})

    contact = db.session.get(ContactSubmission, response.get_json()['id'])
    assert contact.ip_address == '198.51.100.4'
    assert contact.user_agent == 'Mozilla/5.0 test'
    assert contact.referrer == 'https://sharaywhiskandwillow.netlify.app/contact'



def test_long_referrer_is_stored_intact(client, valid_payload, dispatched):
    referrer = 'https://sharaywhiskandwillow.netlify.app/contact?' + 'utm_campaign=x&' * 140

    response = client.post('/api/contact', json=valid_payload, headers={'Referer': referrer})

    assert response.status_code == 201
    contact = db.session.get(ContactSubmission, response.get_json()['id'])
    assert contact.referrer == referrer
    assert isinstance(ContactSubmission.__table__.c.referrer.type, db.Text)
    assert isinstance(ContactSubmission.__table__.c.user_agent.type, db.Text)


def test_submit_accepts_form_encoding(client, valid_payload, dispatched):
    response = client.post('/api/contact', data=valid_payload)

    assert response.status_code == 201


def test_submit_validation_error(client):
    response = client.post('/api/contact', json={'name': 'J', 'email': '', 'message': 'hi'})

    assert response.status_code == 400
    assert response.get_json() == {
        'success': False,
        'error': 'Validation failed',
        'details': [
            'Name must be at least 2 characters',
            'Email is required',
            'Message must be at least 10 characters',
        ],
    }


def test_submit_without_body(client):
    response = client.post('/api/contact')

    assert response.status_code == 400
    assert response.get_json()['details'] == ['Request body must be a JSON object']


def test_duplicate_submission(client, valid_payload, dispatched):
    assert client.post('/api/contact', json=valid_payload).status_code == 201

    response = client.post('/api/contact', json=valid_payload)

    assert response.status_code == 400
    assert response.get_json() == {'success': False, 'error': 'Duplicate submission detected'}


def test_storage_failure_is_opaque(client, valid_payload):
    ContactSubmission.__table__.drop(db.engine)

    response = client.post('/api/contact', json=valid_payload)

    assert response.status_code == 500
    body = response.get_json()
    assert body['success'] is False
    assert body['error'] == 'Internal server error. Please try again later.'
    assert body['reference'].startswith('ERR-')
    assert 'details' not in body


def test_list_contacts(client, make_contact):
    for i in range(25):
        make_contact(status='read' if i % 5 == 0 else 'new')

    response = client.get('/api/contacts?page=2&limit=10&status=new')

    body = response.get_json()
    assert response.status_code == 200
    assert len(body['data']) == 10
    assert {row['status'] for row in body['data']} == {'new'}
    assert body['pagination'] == {
        'page': 2,
        'limit': 10,
        'total': 20,
        'totalPages': 2,
        'hasNextPage': False,
        'hasPrevPage': True,
    }


def test_list_contacts_bad_numbers_fall_back(client, make_contact):
    make_contact()

    body = client.get('/api/contacts?page=abc&limit=xyz').get_json()

    assert body['pagination']['page'] == 1
    assert body['pagination']['limit'] == 20


def test_list_contacts_search_and_sort(client, make_contact):
    make_contact(name='Zed', message='Wedding cake tasting please')
    make_contact(name='Amy', message='Cupcakes for a party of ten')
    make_contact(name='Bob', message='Sourdough subscription enquiry')

    body = client.get('/api/contacts?search=cake&sortBy=name&sortOrder=asc').get_json()

    assert [row['name'] for row in body['data']] == ['Amy', 'Zed']


def test_stats_endpoint(client, make_contact):
    make_contact(order_type='bread')
    make_contact(order_type='')

    body = client.get('/api/contacts/stats').get_json()

    assert body['success'] is True
    assert body['data']['totalContacts'] == 2
    assert body['data']['byStatus'] == {'new': 2}
    assert body['data']['byOrderType'] == {'bread': 1}


def test_missing_contact_is_404(client):
    for method in ('get', 'put', 'delete'):
        response = getattr(client, method)('/api/contact/nope')
        assert response.status_code == 404
        assert response.get_json() == {'success': False, 'error': 'Contact not found'}


def test_invalid_status_update_is_400(client, make_contact):
    contact_id = make_contact().id

    response = client.put(f'/api/contact/{contact_id}', json={'status': 'bogus'})

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Validation failed'


def test_delete_contact(client, make_contact):
    contact_id = make_contact().id

    response = client.delete(f'/api/contact/{contact_id}')

    assert response.get_json() == {
        'success': True,
        'message': 'Contact deleted successfully',
        'id': contact_id,
    }
    assert client.get(f'/api/contact/{contact_id}').status_code == 404


def test_bulk_errors(client, make_contact):
    contact_id = make_contact().id

    empty = client.post('/api/bulk/contacts', json={'ids': [], 'action': 'delete'})
    assert empty.status_code == 400
    assert empty.get_json()['error'] == 'No contact IDs provided'

    invalid = client.post('/api/bulk/contacts', json={'ids': [contact_id], 'action': 'nuke'})
    assert invalid.status_code == 400
    assert invalid.get_json()['error'] == 'Invalid action'


def test_bulk_delete_endpoint(client, make_contact):
    ids = [make_contact().id, make_contact().id]

    response = client.post('/api/bulk/contacts', json={'ids': ids, 'action': 'delete'})

    assert response.get_json()['message'] == 'Successfully deleted 2 contacts'
    assert ContactSubmission.query.count() == 0


def test_unknown_route(client):
    response = client.post('/api/nowhere')

    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'error': 'Route not found: POST /api/nowhere'}


def test_method_not_allowed_is_json(client):
    response = client.patch('/api/contacts')

    assert response.status_code == 405
    assert response.get_json()['success'] is False


def test_body_size_limit(app, client):
    app.config['MAX_CONTENT_LENGTH'] = 100

    response = client.post('/api/contact', json={'message': 'x' * 500})

    assert response.status_code == 413
    assert response.get_json()['success'] is False


def test_unexpected_error_is_generic(app, client, monkeypatch, services):
    def boom(*args, **kwargs):
        raise KeyError('secret internals')

    monkeypatch.setattr(services.queries, 'stats', boom)

    response = client.get('/api/contacts/stats')

    assert response.status_code == 500
    body = response.get_json()
    assert body['error'] == 'Internal server error'
    assert 'secret internals' not in response.get_data(as_text=True)


def test_cors_allows_known_origin(client):
    allowed = client.get('/health', headers={'Origin': 'http://localhost:8080'})
    blocked = client.get('/health', headers={'Origin': 'https://evil.example'})

    assert allowed.headers.get('Access-Control-Allow-Origin') == 'http://localhost:8080'
    assert 'Access-Control-Allow-Origin' not in blocked.headers


def test_non_object_bodies_are_ignored(client, make_contact):
    contact_id = make_contact().id

    updated = client.put(f'/api/contact/{contact_id}', json=['status', 'spam'])
    bulk = client.post('/api/bulk/contacts', json=[contact_id])

    assert updated.status_code == 200
    assert updated.get_json()['data']['status'] == 'new'
    assert bulk.status_code == 400

"""JSON API endpoints for contact submissions."""

from flask import Blueprint, jsonify, request
from whiskwillow.services import ContactFilters, RequestContext, get_services
from whiskwillow.utils.helpers import isoformat

api_bp = Blueprint('api', __name__)


def _json_object():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _request_payload():
    """JSON body, falling back to form fields for urlencoded posts."""
    payload = request.get_json(silent=True)
    if payload is None and request.form:
        payload = request.form.to_dict()
    return payload


@api_bp.route('/contact', methods=['POST'])
def submit_contact():
    """Accept a contact form submission."""
    receipt = get_services().submissions.submit(
        _request_payload(), RequestContext.from_request(request)
    )
    return jsonify({
        'success': True,
        'message': "Thank you for reaching out! We'll get back to you within 24 hours.",
        'id': receipt.id,
        'timestamp': isoformat(receipt.created_at)
    }), 201


@api_bp.route('/contacts')
def list_contacts():
    """List contacts with pagination, filtering, search and sorting."""
    filters = ContactFilters(
        status=request.args.get('status'),
        order_type=request.args.get('orderType'),
        search=request.args.get('search', '').strip() or None
    )
    page = get_services().queries.list_contacts(
        filters,
        page=request.args.get('page', 1, type=int),
        limit=request.args.get('limit', None, type=int),
        sort_by=request.args.get('sortBy', 'createdAt'),
        sort_order=request.args.get('sortOrder', 'desc')
    )
    return jsonify({
        'success': True,
        'data': [contact.to_dict() for contact in page.items],
        'pagination': page.pagination()
    })


@api_bp.route('/contacts/stats')
def contact_stats():
    """Aggregate contact statistics."""
    return jsonify({'success': True, 'data': get_services().queries.stats()})


@api_bp.route('/contact/<contact_id>')
def get_contact(contact_id):
    contact = get_services().queries.get_contact(contact_id)
    return jsonify({'success': True, 'data': contact.to_dict()})


@api_bp.route('/contact/<contact_id>', methods=['PUT'])
def update_contact(contact_id):
    """Update a contact's status."""
    contact = get_services().queries.update_contact(
        contact_id, _json_object()
    )
    return jsonify({
        'success': True,
        'data': contact.to_dict(),
        'message': 'Contact updated successfully'
    })


@api_bp.route('/contact/<contact_id>', methods=['DELETE'])
def delete_contact(contact_id):
    removed_id = get_services().queries.remove_contact(contact_id)
    return jsonify({
        'success': True,
        'message': 'Contact deleted successfully',
        'id': removed_id
    })


@api_bp.route('/bulk/contacts', methods=['POST'])
def bulk_contacts():
    """Archive, mark read or delete several contacts at once."""
    data = _json_object()
    result = get_services().queries.bulk_action(data.get('ids'), data.get('action'))
    return jsonify({
        'success': True,
        'message': result.message,
        'affected': result.affected
    })

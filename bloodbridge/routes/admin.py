from flask import Blueprint, current_app, g, jsonify, request

from bloodbridge.auth import requires
from bloodbridge.errors import Forbidden
from bloodbridge.routes import json_body, page_envelope
from bloodbridge.services import get_services
from bloodbridge.services.common import parse_pagination
from bloodbridge.services.access_policy import (
    LIST_ALL_REQUESTS, MANAGE_USERS, OVERRIDE_REQUEST_STATUS, VIEW_STATS,
)

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/donation-requests', methods=['GET'])
@requires(LIST_ALL_REQUESTS)
def list_all_requests():
    """
    List every donation request, newest first
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: status
        in: query
        type: string
        enum: [pending, inprogress, done, canceled]
      - name: page
        in: query
        type: integer
        default: 1
      - name: limit
        in: query
        type: integer
        default: 10
    responses:
      200:
        description: One page of requests plus the total match count
      403:
        description: Caller is not an admin or volunteer
    """
    page, limit = parse_pagination(request.args, current_app.config['DEFAULT_PAGE_SIZE'])
    pagination = get_services().ledger.list_requests(
        status=request.args.get('status'), page=page, limit=limit
    )
    return jsonify(page_envelope(pagination, page, limit, 'requests')), 200


@admin_bp.route('/donation-requests/<request_id>/status', methods=['PATCH'])
@requires(OVERRIDE_REQUEST_STATUS)
def override_request_status(request_id):
    """
    Set any status on a donation request
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: request_id
        in: path
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - status
          properties:
            status:
              type: string
              enum: [pending, inprogress, done, canceled]
    responses:
      200:
        description: Status updated
      400:
        description: Invalid status value
      403:
        description: Caller is not an admin or volunteer
      404:
        description: Donation request not found
    """
    data = json_body()
    donation_request = get_services().ledger.override_status(request_id, data.get('status'))
    current_app.logger.info(
        "Donation request %s set to %s by %s", request_id, donation_request.status, g.current_user.email
    )
    return jsonify({
        'message': 'Donation request status updated',
        'data': donation_request.to_dict()
    }), 200


@admin_bp.route('/users', methods=['GET'])
@requires(MANAGE_USERS)
def list_users():
    """
    List users
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: status
        in: query
        type: string
        enum: [active, blocked]
      - name: page
        in: query
        type: integer
        default: 1
      - name: limit
        in: query
        type: integer
        default: 10
    responses:
      200:
        description: One page of users plus the total match count
      403:
        description: Caller is not an admin
    """
    page, limit = parse_pagination(request.args, current_app.config['DEFAULT_PAGE_SIZE'])
    pagination = get_services().directory.list_users(
        status=request.args.get('status'), page=page, limit=limit
    )
    return jsonify(page_envelope(pagination, page, limit, 'users')), 200


def _manage_other_user(user_id):
    target = get_services().directory.get(user_id)
    if target.user_id == g.current_user.user_id:
        raise Forbidden('Admins cannot change their own role or status')
    return target


@admin_bp.route('/users/<user_id>/role', methods=['PATCH'])
@requires(MANAGE_USERS)
def set_user_role(user_id):
    """
    Change a user's role
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: user_id
        in: path
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - role
          properties:
            role:
              type: string
              enum: [donor, volunteer, admin]
    responses:
      200:
        description: Role updated
      400:
        description: Invalid role
      403:
        description: Caller is not an admin, or targets themselves
      404:
        description: User not found
    """
    data = json_body()
    target = _manage_other_user(user_id)
    user = get_services().directory.set_role(target.user_id, data.get('role'))
    current_app.logger.info("User %s role set to %s by %s", user.email, user.role, g.current_user.email)
    return jsonify({'message': 'User role updated', 'data': user.to_dict()}), 200


@admin_bp.route('/users/<user_id>/status', methods=['PATCH'])
@requires(MANAGE_USERS)
def set_user_status(user_id):
    """
    Block or unblock a user
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: user_id
        in: path
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - status
          properties:
            status:
              type: string
              enum: [active, blocked]
    responses:
      200:
        description: Status updated
      400:
        description: Invalid status
      403:
        description: Caller is not an admin, or targets themselves
      404:
        description: User not found
    """
    data = json_body()
    target = _manage_other_user(user_id)
    user = get_services().directory.set_status(target.user_id, data.get('status'))
    current_app.logger.info("User %s status set to %s by %s", user.email, user.status, g.current_user.email)
    return jsonify({'message': 'User status updated', 'data': user.to_dict()}), 200


@admin_bp.route('/stats', methods=['GET'])
@requires(VIEW_STATS)
def stats():
    """
    Aggregate statistics
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    responses:
      200:
        description: User and request totals
      403:
        description: Caller is not an admin or volunteer
    """
    services = get_services()
    by_status = services.ledger.status_counts()
    return jsonify({
        'totalUsers': services.directory.count(),
        'totalDonors': services.directory.count(role='donor'),
        'totalRequests': sum(by_status.values()),
        'requestsByStatus': by_status,
    }), 200

from flask import Blueprint, current_app, g, jsonify, request

from bloodbridge.auth import authenticated, requires
from bloodbridge.routes import json_body, page_envelope
from bloodbridge.services import get_services
from bloodbridge.services.common import parse_pagination
from bloodbridge.services.access_policy import CREATE_REQUEST, MANAGE_OWN_REQUESTS

requests_bp = Blueprint('donation_requests', __name__)


@requests_bp.route('/donation-requests', methods=['POST'])
@requires(CREATE_REQUEST)
def create_donation_request():
    """
    Create a donation request as the caller
    ---
    tags:
      - Donation Requests
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - recipientName
            - recipientDistrict
            - recipientUpazila
            - hospitalName
            - address
            - bloodGroup
            - donationDate
            - donationTime
          properties:
            recipientName:
              type: string
            recipientDistrict:
              type: string
            recipientUpazila:
              type: string
            hospitalName:
              type: string
            address:
              type: string
            bloodGroup:
              type: string
            donationDate:
              type: string
            donationTime:
              type: string
            message:
              type: string
    responses:
      201:
        description: Donation request created (status pending)
      400:
        description: Missing or invalid fields
      403:
        description: Caller is blocked
    """
    donation_request = get_services().ledger.create(g.current_user, json_body())
    current_app.logger.info(
        "Donation request %s created by %s", donation_request.request_id, g.current_user.email
    )
    return jsonify({
        'message': 'Donation request created successfully',
        'data': donation_request.to_dict()
    }), 201


@requests_bp.route('/donation-requests/mine', methods=['GET'])
@requires(MANAGE_OWN_REQUESTS)
def list_my_requests():
    """
    List the caller's own donation requests, newest first
    ---
    tags:
      - Donation Requests
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
    """
    page, limit = parse_pagination(request.args, current_app.config['DEFAULT_PAGE_SIZE'])
    pagination = get_services().ledger.list_requests(
        status=request.args.get('status'),
        requester_email=g.current_user.email,
        page=page,
        limit=limit,
    )
    return jsonify(page_envelope(pagination, page, limit, 'requests')), 200


@requests_bp.route('/donation-requests/<request_id>', methods=['GET'])
@authenticated
def get_donation_request(request_id):
    """
    Get a single donation request
    ---
    tags:
      - Donation Requests
    security:
      - Bearer: []
    parameters:
      - name: request_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Donation request details
      404:
        description: Donation request not found
    """
    donation_request = get_services().ledger.get(request_id)
    return jsonify({'message': 'Donation request', 'data': donation_request.to_dict()}), 200


@requests_bp.route('/donation-requests/<request_id>', methods=['PATCH'])
@requires(MANAGE_OWN_REQUESTS)
def edit_donation_request(request_id):
    """
    Edit a donation request (requester or admin)
    ---
    tags:
      - Donation Requests
    security:
      - Bearer: []
    parameters:
      - name: request_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Donation request updated
      403:
        description: Caller is neither the requester nor an admin
      404:
        description: Donation request not found
    """
    services = get_services()
    donation_request = services.ledger.get(request_id)
    services.policy.check_owner(g.current_user, donation_request)

    donation_request = services.ledger.edit(donation_request, json_body())
    return jsonify({
        'message': 'Donation request updated successfully',
        'data': donation_request.to_dict()
    }), 200


@requests_bp.route('/donation-requests/<request_id>', methods=['DELETE'])
@requires(MANAGE_OWN_REQUESTS)
def delete_donation_request(request_id):
    """
    Delete a donation request (requester or admin)
    ---
    tags:
      - Donation Requests
    security:
      - Bearer: []
    parameters:
      - name: request_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Donation request deleted
      403:
        description: Caller is neither the requester nor an admin
      404:
        description: Donation request not found
    """
    services = get_services()
    donation_request = services.ledger.get(request_id)
    services.policy.check_owner(g.current_user, donation_request)

    services.ledger.delete(donation_request)
    current_app.logger.info("Donation request %s deleted by %s", request_id, g.current_user.email)
    return jsonify({'message': 'Donation request deleted successfully'}), 200


@requests_bp.route('/donation-requests/<request_id>/donate', methods=['PATCH'])
@authenticated
def donate(request_id):
    """
    Claim a pending request as its donor
    ---
    tags:
      - Donation Requests
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
            - donorName
          properties:
            donorName:
              type: string
    responses:
      200:
        description: Request moved to inprogress with the caller as donor
      400:
        description: Request is not pending
      404:
        description: Donation request not found
    """
    data = json_body()
    donation_request = get_services().ledger.claim(
        request_id, data.get('donorName'), g.identity.email
    )
    current_app.logger.info("Donation request %s claimed by %s", request_id, g.identity.email)
    return jsonify({
        'message': 'Donation confirmed',
        'data': donation_request.to_dict()
    }), 200


@requests_bp.route('/donation-requests/<request_id>/status', methods=['PATCH'])
@requires(MANAGE_OWN_REQUESTS)
def update_own_request_status(request_id):
    """
    Finish an in-progress request (requester only)
    ---
    tags:
      - Donation Requests
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
              enum: [done, canceled]
    responses:
      200:
        description: Status updated
      400:
        description: Invalid target status or request not in progress
      403:
        description: Caller is not the requester
    """
    data = json_body()
    donation_request = get_services().ledger.complete(
        request_id, g.current_user.email, data.get('status')
    )
    current_app.logger.info(
        "Donation request %s marked %s by requester", request_id, donation_request.status
    )
    return jsonify({
        'message': 'Donation request status updated',
        'data': donation_request.to_dict()
    }), 200

from flask import Blueprint, current_app, g, jsonify, request

from bloodbridge.auth import requires
from bloodbridge.errors import ValidationError
from bloodbridge.routes import json_body
from bloodbridge.services import get_services
from bloodbridge.services.access_policy import UPDATE_PROFILE, VIEW_PROFILE

users_bp = Blueprint('users', __name__)


@users_bp.route('/register-user', methods=['POST'])
def register_user():
    """
    Register a new user (role=donor, status=active)
    ---
    tags:
      - Users
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - email
            - bloodGroup
            - district
            - upazila
          properties:
            name:
              type: string
            email:
              type: string
            bloodGroup:
              type: string
              enum: [A+, A-, B+, B-, AB+, AB-, O+, O-]
            district:
              type: string
            upazila:
              type: string
            avatar:
              type: string
    responses:
      201:
        description: User registered successfully
      400:
        description: Missing fields, invalid values or email already exists
    """
    user = get_services().directory.register(json_body())
    current_app.logger.info("Registered user %s", user.email)
    return jsonify({'message': 'User registered successfully', 'data': user.to_dict()}), 201


@users_bp.route('/get-user-role', methods=['GET'])
def get_user_role():
    """
    Get a user's role by email
    ---
    tags:
      - Users
    parameters:
      - name: email
        in: query
        type: string
        required: true
    responses:
      200:
        description: The user's role
      400:
        description: Email is required
      404:
        description: User not found
    """
    email = request.args.get('email')
    if not email:
        raise ValidationError('Email is required')

    user = get_services().directory.get_by_email(email)
    return jsonify({'role': user.role}), 200


@users_bp.route('/users/me', methods=['GET'])
@requires(VIEW_PROFILE)
def get_profile():
    """
    Get the caller's profile
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: User profile
      401:
        description: Missing or invalid credential
      404:
        description: User not found
    """
    return jsonify({'message': 'User profile', 'data': g.current_user.to_dict()}), 200


@users_bp.route('/users/me', methods=['PATCH'])
@requires(UPDATE_PROFILE)
def update_profile():
    """
    Update the caller's profile fields
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            bloodGroup:
              type: string
            district:
              type: string
            upazila:
              type: string
            avatar:
              type: string
    responses:
      200:
        description: Profile updated
      400:
        description: No updatable field supplied
    """
    user = get_services().directory.update_profile(g.current_user, json_body())
    return jsonify({'message': 'Profile updated successfully', 'data': user.to_dict()}), 200


@users_bp.route('/search-donors', methods=['GET'])
def search_donors():
    """
    Search active donors
    ---
    tags:
      - Users
    parameters:
      - name: bloodGroup
        in: query
        type: string
        description: URL-encode the sign, e.g. O%2B for O+ (a bare + decodes as a space)
      - name: district
        in: query
        type: string
      - name: upazila
        in: query
        type: string
    responses:
      200:
        description: Matching donors
    """
    donors = get_services().directory.search_donors(
        blood_group=request.args.get('bloodGroup'),
        district=request.args.get('district'),
        upazila=request.args.get('upazila'),
    )
    return jsonify({'total': len(donors), 'donors': [d.to_dict() for d in donors]}), 200

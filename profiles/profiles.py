from flask import Blueprint, current_app, jsonify

from auth import request_data, token_required

profile_bp = Blueprint('profile', __name__)


def get_profile_service():
    return current_app.extensions['profile_service']


@profile_bp.route('/profile', methods=['GET'])
@token_required
def get_profile(current_user):
    profile = get_profile_service().get_profile(current_user['user_id'])
    return jsonify({'profile': profile}), 200


@profile_bp.route('/profile', methods=['POST'])
@token_required
def save_profile(current_user):
    profile = get_profile_service().upsert_profile(current_user['user_id'], request_data())
    return jsonify({
        'message': 'Profile saved successfully',
        'profile': profile,
    }), 200


@profile_bp.route('/profile/course', methods=['POST'])
@token_required
def add_course(current_user):
    course = get_profile_service().add_course(current_user['user_id'], request_data())
    return jsonify({
        'message': 'Course added successfully',
        'course': course,
    }), 200


@profile_bp.route('/enroll-course', methods=['POST'])
@token_required
def enroll_course(current_user):
    data = request_data()
    course = get_profile_service().enroll_course(
        current_user['user_id'],
        course_id=data.get('courseId'),
        title=data.get('title'),
        instructor=data.get('instructor'),
        rating=data.get('rating'),
        total_modules=data.get('totalModules'),
    )
    return jsonify({
        'message': 'Successfully enrolled in course!',
        'course': course,
    }), 200


@profile_bp.route('/update-progress', methods=['POST'])
@token_required
def update_progress(current_user):
    data = request_data()
    result = get_profile_service().update_progress(
        current_user['user_id'],
        course_id=data.get('courseId'),
        progress=data.get('progress'),
        hours_spent=data.get('hoursSpent'),
        completed_modules=data.get('completedModules'),
    )
    return jsonify({
        'message': 'Progress updated successfully',
        **result,
    }), 200


@profile_bp.route('/course-status/<course_id>', methods=['GET'])
@token_required
def course_status(current_user, course_id):
    return jsonify(get_profile_service().get_course_status(current_user['user_id'], course_id)), 200

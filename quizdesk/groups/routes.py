"""Group routes. Staff create groups; anyone joins with a code."""
from flask import jsonify, request

from quizdesk.auth.session import Actor
from quizdesk.common.decorators import auth_required, staff_required
from quizdesk.groups import groups_bp
from quizdesk.groups.service import GroupService


@groups_bp.route('', methods=['GET'])
@auth_required
def list_groups(actor: Actor):
    groups = GroupService.list_for(actor, request.args.get('scope'))
    return jsonify([group.to_dict() for group in groups]), 200


@groups_bp.route('', methods=['POST'])
@staff_required
def create_group(actor: Actor):
    data = request.get_json(silent=True) or {}
    group = GroupService.create(actor, data.get('name'))
    return jsonify(group.to_dict()), 201


@groups_bp.route('/join', methods=['POST'])
@auth_required
def join_group(actor: Actor):
    data = request.get_json(silent=True) or {}
    group = GroupService.join(actor, data.get('code'))
    return jsonify(group.to_dict()), 200


@groups_bp.route('/<int:group_id>', methods=['GET'])
@auth_required
def get_group(group_id, actor: Actor):
    return jsonify(GroupService.get_visible(actor, group_id).to_dict()), 200


@groups_bp.route('/<int:group_id>', methods=['DELETE'])
@auth_required
def delete_group(group_id, actor: Actor):
    GroupService.delete(actor, group_id)
    return jsonify({'success': True, 'message': 'Group deleted.'}), 200


@groups_bp.route('/<int:group_id>/leave', methods=['POST'])
@auth_required
def leave_group(group_id, actor: Actor):
    GroupService.leave(actor, group_id)
    return jsonify({'success': True, 'message': 'Left group successfully.'}), 200


@groups_bp.route('/<int:group_id>/members/<int:member_id>', methods=['DELETE'])
@auth_required
def remove_member(group_id, member_id, actor: Actor):
    GroupService.remove_member(actor, group_id, member_id)
    return jsonify({'success': True, 'message': 'Member removed successfully.'}), 200

"""
Test cases for groups and membership.
"""
from datetime import datetime

from sqlalchemy.orm.attributes import set_committed_value

from quizdesk import db
from quizdesk.auth.models import Role
from quizdesk.common.codes import CODE_ALPHABET
from quizdesk.groups.models import Group, group_members


def _create_group(client, name='Physics'):
    response = client.post('/api/groups', json={'name': name})
    assert response.status_code == 201
    return response.get_json()


class TestGroupCreation:

    def test_teacher_creates_group_with_code(self, login, teacher):
        group = _create_group(login(teacher))
        assert len(group['code']) == 7
        assert set(group['code']) <= set(CODE_ALPHABET)
        assert group['created_by']['id'] == teacher.id
        assert [m['id'] for m in group['members']] == [teacher.id]

    def test_students_cannot_create_groups(self, login, student):
        assert login(student).post('/api/groups', json={'name': 'Mine'}).status_code == 403

    def test_name_is_required(self, login, teacher):
        assert login(teacher).post('/api/groups', json={'name': '  '}).status_code == 400


class TestMembership:

    def test_join_is_case_insensitive_and_idempotent(self, login, student, teacher):
        group = _create_group(login(teacher))
        client = login(student)

        first = client.post('/api/groups/join', json={'code': group['code'].lower()})
        assert first.status_code == 200
        second = client.post('/api/groups/join', json={'code': group['code']})
        assert second.status_code == 200
        members = [m['id'] for m in second.get_json()['members']]
        assert members.count(student.id) == 1
        assert len(members) == 2

    def test_join_racing_another_join_returns_group(self, login, student, teacher, monkeypatch):
        group = _create_group(login(teacher))

        def joined_elsewhere(self, user_id):
            # Another request adds the row between the membership check and the insert
            members = list(self.members)
            db.session.execute(group_members.insert().values(
                group_id=self.id, user_id=user_id, joined_at=datetime.utcnow(),
            ))
            db.session.commit()
            set_committed_value(self, 'members', members)
            return False

        monkeypatch.setattr(Group, 'has_member', joined_elsewhere)
        response = login(student).post('/api/groups/join', json={'code': group['code']})
        assert response.status_code == 200
        members = [m['id'] for m in response.get_json()['members']]
        assert members.count(student.id) == 1
        assert len(members) == 2

    def test_join_unknown_code(self, login, student):
        assert login(student).post('/api/groups/join', json={'code': 'ZZZZZZZ'}).status_code == 404
        assert login(student).post('/api/groups/join', json={}).status_code == 400

    def test_student_lists_joined_groups(self, login, student, teacher):
        owner_client = login(teacher)
        joined = _create_group(owner_client, 'Joined')
        _create_group(owner_client, 'Other')
        client = login(student)
        client.post('/api/groups/join', json={'code': joined['code']})

        assert [g['id'] for g in client.get('/api/groups').get_json()] == [joined['id']]
        assert len(owner_client.get('/api/groups').get_json()) == 2

    def test_member_leaves(self, login, make_user, student, teacher):
        group = _create_group(login(teacher))
        other = make_user(Role.STUDENT)
        client = login(student)
        client.post('/api/groups/join', json={'code': group['code']})
        login(other).post('/api/groups/join', json={'code': group['code']})

        assert client.post(f"/api/groups/{group['id']}/leave").status_code == 200
        members = {m['id'] for m in login(teacher).get(f"/api/groups/{group['id']}").get_json()['members']}
        assert members == {teacher.id, other.id}

    def test_owner_cannot_leave(self, login, teacher):
        client = login(teacher)
        group = _create_group(client)
        response = client.post(f"/api/groups/{group['id']}/leave")
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Group owner cannot leave the group.'

    def test_non_member_cannot_leave(self, login, student, teacher):
        group = _create_group(login(teacher))
        assert login(student).post(f"/api/groups/{group['id']}/leave").status_code == 400

    def test_non_member_cannot_view(self, login, student, teacher):
        group = _create_group(login(teacher))
        assert login(student).get(f"/api/groups/{group['id']}").status_code == 403


class TestMemberRemoval:

    def test_owner_removes_member(self, login, student, teacher):
        owner_client = login(teacher)
        group = _create_group(owner_client)
        login(student).post('/api/groups/join', json={'code': group['code']})

        response = owner_client.delete(f"/api/groups/{group['id']}/members/{student.id}")
        assert response.status_code == 200
        members = [m['id'] for m in owner_client.get(f"/api/groups/{group['id']}").get_json()['members']]
        assert members == [teacher.id]

    def test_owner_cannot_be_removed(self, login, teacher, admin):
        group = _create_group(login(teacher))
        response = login(admin).delete(f"/api/groups/{group['id']}/members/{teacher.id}")
        assert response.status_code == 400

    def test_members_cannot_remove_others(self, login, make_user, student, teacher):
        group = _create_group(login(teacher))
        other = make_user(Role.STUDENT)
        login(other).post('/api/groups/join', json={'code': group['code']})
        client = login(student)
        client.post('/api/groups/join', json={'code': group['code']})

        assert client.delete(f"/api/groups/{group['id']}/members/{other.id}").status_code == 403

    def test_removing_non_member(self, login, student, teacher):
        client = login(teacher)
        group = _create_group(client)
        assert client.delete(f"/api/groups/{group['id']}/members/{student.id}").status_code == 404


class TestGroupDeletion:

    def test_delete_detaches_quizzes(self, login, student, teacher, make_quiz):
        client = login(teacher)
        group = _create_group(client)
        quiz = make_quiz(teacher, access_type='group', group_id=group['id'])

        assert login(student).delete(f"/api/groups/{group['id']}").status_code == 403
        assert client.delete(f"/api/groups/{group['id']}").status_code == 200
        assert client.get(f"/api/groups/{group['id']}").status_code == 404

        staff_view = client.get(f"/api/admin/quizzes/{quiz['id']}").get_json()
        assert staff_view['group_id'] is None
        assert login(student).get(f"/api/quizzes/{quiz['id']}").status_code == 403

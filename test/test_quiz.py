"""
Test cases for the student quiz flow: listing, fetching, submitting and
reviewing attempts.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from conftest import answers_for, sample_questions
from quizdesk import db
from quizdesk.auth.models import Role
from quizdesk.common.errors import Conflict
from quizdesk.quiz.models import Attempt
from quizdesk.quiz.service import AttemptService, QuizCatalog


class TestQuizListing:

    def test_lists_enabled_global_quizzes(self, login, student, teacher, make_quiz):
        open_quiz = make_quiz(teacher, title='Open')
        make_quiz(teacher, title='Hidden', is_enabled=False)
        make_quiz(teacher, title='Coded', access_type='code')

        response = login(student).get('/api/quizzes')
        assert response.status_code == 200
        quizzes = response.get_json()
        assert [q['id'] for q in quizzes] == [open_quiz['id']]
        assert quizzes[0]['attempted'] is False
        assert quizzes[0]['total_marks'] == 3

    def test_lists_group_quizzes_for_members_only(self, app, login, make_user, teacher, make_quiz):
        member = make_user(Role.STUDENT)
        outsider = make_user(Role.STUDENT)
        group = login(teacher).post('/api/groups', json={'name': 'Class A'}).get_json()
        assert login(member).post('/api/groups/join', json={'code': group['code']}).status_code == 200
        quiz = make_quiz(teacher, access_type='group', group_id=group['id'])

        assert [q['id'] for q in login(member).get('/api/quizzes').get_json()] == [quiz['id']]
        assert login(outsider).get('/api/quizzes').get_json() == []

    def test_global_scope_filter(self, login, teacher, make_quiz):
        public = make_quiz(teacher, title='Public')
        make_quiz(teacher, title='Own coded', access_type='code')
        client = login(teacher)

        ids = {q['id'] for q in client.get('/api/quizzes').get_json()}
        assert public['id'] in ids and len(ids) == 2
        assert [q['id'] for q in client.get('/api/quizzes?scope=global').get_json()] == [public['id']]


class TestQuizFetch:

    def test_answers_are_never_sent_to_students(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, questions=sample_questions(6))
        response = login(student).get(f"/api/quizzes/{quiz['id']}")
        assert response.status_code == 200
        data = response.get_json()
        assert len(data['questions']) == 6
        assert {q['id'] for q in data['questions']} == {q['id'] for q in quiz['questions']}
        for question in data['questions']:
            assert 'correct_index' not in question
            assert question['options'] == ['A', 'B', 'C', 'D']

    def test_question_order_is_shuffled(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, questions=sample_questions(8))
        client = login(student)
        orders = {
            tuple(q['id'] for q in client.get(f"/api/quizzes/{quiz['id']}").get_json()['questions'])
            for _ in range(10)
        }
        assert len(orders) > 1

    def test_disabled_quiz_is_not_found(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, is_enabled=False)
        assert login(student).get(f"/api/quizzes/{quiz['id']}").status_code == 404

    def test_unknown_quiz_is_not_found(self, login, student):
        assert login(student).get('/api/quizzes/999').status_code == 404

    def test_code_quiz_needs_code(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, access_type='code')
        code = quiz['access_code']
        client = login(student)

        response = client.get(f"/api/quizzes/{quiz['id']}")
        assert response.status_code == 403
        assert response.get_json() == {'success': False, 'message': 'Access denied'}

        assert client.get(f"/api/quizzes/{quiz['id']}?code=WRONG123").status_code == 403
        assert client.get(f"/api/quizzes/{quiz['id']}?code={code}").status_code == 200
        assert client.get(f"/api/quizzes/{quiz['id']}?code={code.lower()}").status_code == 200
        assert client.get(f"/api/quizzes/{quiz['id']}", headers={'X-Access-Code': code}).status_code == 200

    def test_group_quiz_rejects_non_members(self, login, student, teacher, make_quiz):
        group = login(teacher).post('/api/groups', json={'name': 'Class B'}).get_json()
        quiz = make_quiz(teacher, access_type='group', group_id=group['id'])
        assert login(student).get(f"/api/quizzes/{quiz['id']}").status_code == 403

    def test_redeem_access_code(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, access_type='code')
        client = login(student)

        response = client.post('/api/quizzes/access', json={'code': quiz['access_code'].lower()})
        assert response.status_code == 200
        assert response.get_json()['quiz']['id'] == quiz['id']

        assert client.post('/api/quizzes/access', json={'code': 'NOPE2345'}).status_code == 404
        assert client.post('/api/quizzes/access', json={}).status_code == 404


class TestSubmitAttempt:

    def test_submit_scores_on_the_server(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, questions=sample_questions(4))
        response = login(student).post(f"/api/quizzes/{quiz['id']}/attempt", json={
            'answers': answers_for(quiz, 3),
            'time_taken_seconds': 42,
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['score'] == 3
        assert data['total_marks'] == 4
        assert len(data['review']) == 4
        assert [item['is_correct'] for item in data['review']] == [True, True, True, False]
        assert data['review'][0]['correct_index'] == quiz['questions'][0]['correct_index']

    def test_marks_per_question_scale_score(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, questions=sample_questions(2), marks_per_question=5)
        data = login(student).post(f"/api/quizzes/{quiz['id']}/attempt", json={
            'answers': answers_for(quiz, 1),
        }).get_json()
        assert data['score'] == 5
        assert data['total_marks'] == 10

    def test_repeated_answers_cannot_inflate_score(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, single_attempt=False)
        client = login(student)
        url = f"/api/quizzes/{quiz['id']}/attempt"
        first = quiz['questions'][0]

        response = client.post(url, json={
            'answers': [{'question_id': first['id'], 'selected_index': first['correct_index']}] * 10,
        })
        assert response.status_code == 400
        assert response.get_json()['message'] == f"Duplicate answer for question {first['id']}"

        every_option = [
            {'question_id': q['id'], 'selected_index': index}
            for q in quiz['questions']
            for index in range(len(q['options']))
        ]
        assert client.post(url, json={'answers': every_option}).status_code == 400
        assert client.get('/api/quizzes/attempts/me').get_json() == []

    def test_invalid_answers_are_rejected(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher)
        client = login(student)
        response = client.post(f"/api/quizzes/{quiz['id']}/attempt", json={'answers': 'all of them'})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Invalid answers'
        assert client.get('/api/quizzes/attempts/me').get_json() == []

    def test_single_attempt_quiz_rejects_second_submission(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher)
        client = login(student)
        url = f"/api/quizzes/{quiz['id']}/attempt"

        first = client.post(url, json={'answers': answers_for(quiz, 2), 'time_taken_seconds': 30})
        assert first.status_code == 201
        second = client.post(url, json={'answers': answers_for(quiz, 3), 'time_taken_seconds': 20})
        assert second.status_code == 409
        assert second.get_json()['message'] == 'Attempt already exists'

        attempts = client.get('/api/quizzes/attempts/me').get_json()
        assert len(attempts) == 1
        assert attempts[0]['score'] == 2

        listed = client.get('/api/quizzes').get_json()
        assert listed[0]['attempted'] is True

    def test_multi_attempt_quiz_accepts_repeats(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, single_attempt=False)
        client = login(student)
        url = f"/api/quizzes/{quiz['id']}/attempt"
        assert client.post(url, json={'answers': answers_for(quiz, 1)}).status_code == 201
        assert client.post(url, json={'answers': answers_for(quiz, 3)}).status_code == 201
        assert len(client.get('/api/quizzes/attempts/me').get_json()) == 2

    def test_code_quiz_submit_needs_code(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher, access_type='code')
        client = login(student)
        url = f"/api/quizzes/{quiz['id']}/attempt"

        assert client.post(url, json={'answers': answers_for(quiz, 3)}).status_code == 403
        response = client.post(url, json={'answers': answers_for(quiz, 3), 'access_code': quiz['access_code']})
        assert response.status_code == 201

    def test_revoked_membership_blocks_submit(self, login, student, teacher, make_quiz):
        owner_client = login(teacher)
        group = owner_client.post('/api/groups', json={'name': 'Class C'}).get_json()
        quiz = make_quiz(teacher, access_type='group', group_id=group['id'])
        client = login(student)
        client.post('/api/groups/join', json={'code': group['code']})
        assert client.get(f"/api/quizzes/{quiz['id']}").status_code == 200

        owner_client.delete(f"/api/groups/{group['id']}/members/{student.id}")
        response = client.post(f"/api/quizzes/{quiz['id']}/attempt", json={'answers': answers_for(quiz, 3)})
        assert response.status_code == 403

    def test_disabled_quiz_rejects_submission(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher)
        login(teacher).patch(f"/api/admin/quizzes/{quiz['id']}/toggle")
        response = login(student).post(f"/api/quizzes/{quiz['id']}/attempt", json={'answers': []})
        assert response.status_code == 404


class TestSingleAttemptConstraint:
    """The storage layer refuses a second locked attempt even when the pre-check is bypassed."""

    def test_unique_constraint(self, app, student, teacher, make_quiz):
        quiz = make_quiz(teacher)
        with app.app_context():
            db.session.add(Attempt(user_id=student.id, quiz_id=quiz['id'], answers=[], score=0,
                                   single_attempt_lock=True))
            db.session.commit()
            db.session.add(Attempt(user_id=student.id, quiz_id=quiz['id'], answers=[], score=1,
                                   single_attempt_lock=True))
            with pytest.raises(IntegrityError):
                db.session.commit()
            db.session.rollback()

            db.session.add(Attempt(user_id=student.id, quiz_id=quiz['id'], answers=[], score=2))
            db.session.add(Attempt(user_id=student.id, quiz_id=quiz['id'], answers=[], score=3))
            db.session.commit()

    def test_concurrent_submission_maps_to_conflict(self, app, monkeypatch, student, teacher, make_quiz):
        quiz = make_quiz(teacher)
        monkeypatch.setattr(QuizCatalog, 'has_attempted', staticmethod(lambda actor, quiz_id: False))

        with app.test_request_context():
            AttemptService.submit(student, quiz['id'], None, answers_for(quiz, 1), 10)
            with pytest.raises(Conflict):
                AttemptService.submit(student, quiz['id'], None, answers_for(quiz, 2), 10)
            assert Attempt.query.filter_by(user_id=student.id).count() == 1


class TestAttemptReview:

    def test_student_reviews_own_attempt(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher)
        client = login(student)
        attempt_id = client.post(f"/api/quizzes/{quiz['id']}/attempt", json={
            'answers': answers_for(quiz, 2),
        }).get_json()['attempt_id']

        response = client.get(f'/api/quizzes/attempts/{attempt_id}')
        assert response.status_code == 200
        data = response.get_json()
        assert data['score'] == 2
        assert data['review'][0]['text'] == 'Question 1'
        assert data['review'][0]['options'] == ['A', 'B', 'C', 'D']

    def test_other_students_cannot_review(self, login, make_user, student, teacher, make_quiz):
        quiz = make_quiz(teacher)
        attempt_id = login(student).post(f"/api/quizzes/{quiz['id']}/attempt", json={
            'answers': answers_for(quiz, 2),
        }).get_json()['attempt_id']

        other = make_user(Role.STUDENT)
        assert login(other).get(f'/api/quizzes/attempts/{attempt_id}').status_code == 403
        assert login(teacher).get(f'/api/quizzes/attempts/{attempt_id}').status_code == 200

    def test_review_survives_quiz_edits(self, login, student, teacher, make_quiz):
        quiz = make_quiz(teacher)
        client = login(student)
        attempt_id = client.post(f"/api/quizzes/{quiz['id']}/attempt", json={
            'answers': answers_for(quiz, 3),
        }).get_json()['attempt_id']

        edited = login(teacher).put(f"/api/admin/quizzes/{quiz['id']}", json={
            'questions': sample_questions(5),
            'marks_per_question': 2,
        })
        assert edited.status_code == 200

        data = client.get(f'/api/quizzes/attempts/{attempt_id}').get_json()
        assert data['score'] == 3
        assert data['total_marks'] == 3
        assert [item['is_correct'] for item in data['review']] == [True, True, True]
        assert [item['correct_index'] for item in data['review']] == [q['correct_index'] for q in quiz['questions']]
        assert [item['text'] for item in data['review']] == ['Question 1', 'Question 2', 'Question 3']
        assert data['review'][0]['options'] == ['A', 'B', 'C', 'D']

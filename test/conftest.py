"""
Pytest configuration and fixtures for testing.

Each test gets a fresh app on an in-memory SQLite database. Environment
variables are set before the package is imported because blueprint URL
prefixes and the module-level config are read at import time.
"""
import itertools
import os

os.environ['FLASK_ENV'] = 'testing'
os.environ['SECRET_KEY'] = 'sfndsfojoriwew09rjfjndsknfkj'
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['API_PREFIX'] = '/api'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['MIN_PASSWORD_LENGTH'] = '6'
os.environ['ADMIN_SECRET'] = 'test-admin-secret'
os.environ['TEACHER_SECRET'] = ''
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['LEADERBOARD_SIZE'] = '10'

import pytest

from quizdesk import create_app, db
from quizdesk.auth.models import Role, User
from quizdesk.auth.session import Actor
from quizdesk.auth.utils import hash_password
from quizdesk.quiz.authoring import QuizAuthoring
from quizdesk.security import get_rate_limiter

PASSWORD = 'password123'


def sample_questions(count=3):
    """Four-option questions whose answer key cycles through A, B, C, D."""
    return [
        {'text': f'Question {i + 1}', 'options': ['A', 'B', 'C', 'D'], 'correct_index': i % 4}
        for i in range(count)
    ]


def answers_for(quiz, correct_count):
    """Answer the first ``correct_count`` questions right and the rest wrong."""
    answers = []
    for index, question in enumerate(quiz['questions']):
        selected = question['correct_index']
        if index >= correct_count:
            selected = (selected + 1) % len(question['options'])
        answers.append({'question_id': question['id'], 'selected_index': selected})
    return answers


@pytest.fixture
def app():
    """Create application for testing."""
    app = create_app({'TESTING': True})
    get_rate_limiter().reset()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create an anonymous test client."""
    return app.test_client()


@pytest.fixture
def user_emails():
    return {}


@pytest.fixture
def make_user(app, user_emails):
    """Factory: insert a user and return its ``Actor``."""
    counter = itertools.count(1)

    def _make(role=Role.STUDENT, name=None):
        n = next(counter)
        email = f'{role.value}{n}@example.com'
        with app.app_context():
            user = User(
                name=name or f'{role.value.title()} {n}',
                email=email,
                password_hash=hash_password(PASSWORD),
                role=role,
            )
            db.session.add(user)
            db.session.commit()
            actor = Actor(id=user.id, role=role, name=user.name)
        user_emails[actor.id] = email
        return actor

    return _make


@pytest.fixture
def login(app, user_emails):
    """Factory: a test client with an authenticated session for the given actor."""
    def _login(actor):
        client = app.test_client()
        response = client.post('/api/auth/login', json={
            'email': user_emails[actor.id],
            'password': PASSWORD,
        })
        assert response.status_code == 200
        return client

    return _login


@pytest.fixture
def make_quiz(app):
    """Factory: create a quiz through the authoring service and return its staff view."""
    def _make(owner, **fields):
        data = {
            'title': 'Sample Quiz',
            'category': 'General',
            'time_limit_minutes': 10,
            'questions': sample_questions(),
        }
        data.update(fields)
        with app.app_context():
            return QuizAuthoring.create(owner, data).to_staff_dict()

    return _make


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT, name='Alice')


@pytest.fixture
def teacher(make_user):
    return make_user(Role.TEACHER, name='Tom')


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, name='Ada')

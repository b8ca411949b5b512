import pytest

from learnpath import create_app
from learnpath.extensions import db
from learnpath.models import Course, Module, Lesson, LessonProgress
from tests.conftest import TestingConfig


def test_missing_paystack_secret_fails_fast():
    class NoSecret(TestingConfig):
        PAYSTACK_SECRET_KEY = None

    with pytest.raises(RuntimeError):
        create_app(NoSecret)


# -- auth ------------------------------------------------------------------

def test_register_login_and_current_user(client):
    resp = client.post("/api/auth/register", json={
        "email": "New@Example.com",
        "password": "pw12345",
        "first_name": "grace",
        "last_name": "hopper",
        "role": "instructor",
    })
    assert resp.status_code == 201
    assert resp.get_json()["email"] == "new@example.com"

    dup = client.post("/api/auth/register", json={"email": "new@example.com", "password": "x"})
    assert dup.status_code == 409

    bad = client.post("/api/auth/login", json={"email": "new@example.com", "password": "wrong"})
    assert bad.status_code == 401

    login = client.post("/api/auth/login", json={"email": "new@example.com", "password": "pw12345"})
    assert login.status_code == 200
    token = login.get_json()["access_token"]

    me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["role"] == "instructor"


def test_register_cannot_self_assign_admin(client):
    resp = client.post("/api/auth/register", json={"email": "a@example.com", "password": "pw", "role": "admin"})
    assert resp.status_code == 400


# -- courses ---------------------------------------------------------------

def test_list_courses_only_published_with_filters(client, make_course):
    make_course(title="Intro to Flask", category="web")
    make_course(title="Advanced SQL", category="data")
    make_course(title="Draft Course", status="draft")

    titles = {c["title"] for c in client.get("/api/courses").get_json()}
    assert titles == {"Intro to Flask", "Advanced SQL"}

    web = client.get("/api/courses?category=web").get_json()
    assert [c["title"] for c in web] == ["Intro to Flask"]

    searched = client.get("/api/courses?search=sql").get_json()
    assert [c["title"] for c in searched] == ["Advanced SQL"]

    assert len(client.get("/api/courses?limit=1").get_json()) == 1


def test_get_course(client, make_user, make_course):
    instructor = make_user(role="instructor", first_name="Ada", last_name="Lovelace")
    course = make_course(instructor=instructor, price="19.99")

    body = client.get(f"/api/courses/{course.id}").get_json()
    assert body["price"] == "19.99"
    assert body["instructorName"] == "Ada Lovelace"
    assert body["studentsCount"] == 0

    assert client.get("/api/courses/missing").status_code == 404


def test_create_course_requires_instructor_role(client, auth_headers, make_user):
    student = make_user()
    instructor = make_user(role="instructor")
    payload = {"title": "Rust Basics", "price": "25.00", "status": "published"}

    assert client.post("/api/courses", json=payload, headers=auth_headers(student)).status_code == 403

    resp = client.post("/api/courses", json=payload, headers=auth_headers(instructor))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["instructorId"] == instructor.id
    assert body["price"] == "25.00"


def test_create_course_validates_fields(client, auth_headers, make_user):
    instructor = make_user(role="instructor")
    headers = auth_headers(instructor)

    assert client.post("/api/courses", json={"price": 10}, headers=headers).status_code == 400
    assert client.post("/api/courses", json={"title": "X", "price": -1}, headers=headers).status_code == 400
    assert client.post("/api/courses", json={"title": "X", "status": "live"}, headers=headers).status_code == 400


def test_update_course_only_by_owner_or_admin(client, auth_headers, make_user, make_course):
    owner = make_user(role="instructor")
    other = make_user(role="instructor")
    admin = make_user(role="admin")
    course = make_course(instructor=owner)

    resp = client.put(f"/api/courses/{course.id}", json={"title": "Hijacked"}, headers=auth_headers(other))
    assert resp.status_code == 403

    resp = client.put(
        f"/api/courses/{course.id}",
        json={"title": "Renamed", "students_count": 999},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 200
    assert resp.get_json()["title"] == "Renamed"
    assert resp.get_json()["studentsCount"] == 0

    resp = client.put(f"/api/courses/{course.id}", json={"level": "advanced"}, headers=auth_headers(admin))
    assert resp.status_code == 200


def test_my_courses(client, auth_headers, make_user, make_course):
    instructor = make_user(role="instructor")
    make_course(instructor=instructor, title="Mine")
    make_course(title="Someone else's")

    body = client.get("/api/my-courses", headers=auth_headers(instructor)).get_json()
    assert [c["title"] for c in body] == ["Mine"]


def test_modules_and_lessons(client, auth_headers, make_user, make_course):
    owner = make_user(role="instructor")
    course = make_course(instructor=owner)
    headers = auth_headers(owner)

    resp = client.post(f"/api/courses/{course.id}/modules", json={"title": "Basics", "order": 1}, headers=headers)
    assert resp.status_code == 201
    module_id = resp.get_json()["id"]

    stranger = make_user(role="instructor")
    denied = client.post(
        f"/api/modules/{module_id}/lessons",
        json={"title": "Variables", "order": 1},
        headers=auth_headers(stranger),
    )
    assert denied.status_code == 403

    resp = client.post(f"/api/modules/{module_id}/lessons", json={"title": "Variables", "order": 1}, headers=headers)
    assert resp.status_code == 201

    modules = client.get(f"/api/courses/{course.id}/modules").get_json()
    assert [m["title"] for m in modules] == ["Basics"]
    lessons = client.get(f"/api/modules/{module_id}/lessons").get_json()
    assert [l["title"] for l in lessons] == ["Variables"]


# -- enrollments -----------------------------------------------------------

def test_free_enroll_endpoint_is_idempotent(client, auth_headers, make_user, make_course):
    user = make_user()
    course = make_course(price="0")
    headers = auth_headers(user)

    first = client.post(f"/api/courses/{course.id}/enroll", headers=headers)
    second = client.post(f"/api/courses/{course.id}/enroll", headers=headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert first.get_json()["id"] == second.get_json()["id"]
    db.session.expire_all()
    assert db.session.get(Course, course.id).students_count == 1


def test_paid_course_cannot_be_enrolled_directly(client, auth_headers, make_user, make_course):
    course = make_course(price="49.99")
    resp = client.post(f"/api/courses/{course.id}/enroll", headers=auth_headers(make_user()))
    assert resp.status_code == 403


def test_progress_endpoint(client, auth_headers, make_user, make_course):
    user = make_user()
    course = make_course(price="0")
    headers = auth_headers(user)
    client.post(f"/api/courses/{course.id}/enroll", headers=headers)

    resp = client.put(f"/api/enrollments/{course.id}/progress", json={"progress": 100}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["enrollment"]["status"] == "completed"
    assert resp.get_json()["enrollment"]["completedAt"] is not None

    bad = client.put(f"/api/enrollments/{course.id}/progress", json={"progress": 150}, headers=headers)
    assert bad.status_code == 400

    mine = client.get("/api/my-enrollments", headers=headers).get_json()
    assert mine[0]["progress"] == 100


def test_course_enrollments_for_owner_only(client, auth_headers, make_user, make_course):
    owner = make_user(role="instructor")
    course = make_course(instructor=owner, price="0")
    student = make_user()
    client.post(f"/api/courses/{course.id}/enroll", headers=auth_headers(student))

    assert client.get(f"/api/courses/{course.id}/enrollments", headers=auth_headers(student)).status_code == 403
    rows = client.get(f"/api/courses/{course.id}/enrollments", headers=auth_headers(owner)).get_json()
    assert [r["userId"] for r in rows] == [student.id]


def test_lesson_progress_upsert(client, auth_headers, make_user, make_course):
    user = make_user()
    course = make_course()
    module = Module(course_id=course.id, title="M", order=1)
    db.session.add(module)
    db.session.flush()
    lesson = Lesson(module_id=module.id, title="L", order=1)
    db.session.add(lesson)
    db.session.commit()
    headers = auth_headers(user)

    resp = client.put(f"/api/lessons/{lesson.id}/progress", json={"completed": True, "watchTime": 120}, headers=headers)
    assert resp.status_code == 200
    resp = client.put(f"/api/lessons/{lesson.id}/progress", json={"completed": False, "watchTime": 30}, headers=headers)
    assert resp.status_code == 200

    [progress] = LessonProgress.query.filter_by(user_id=user.id, lesson_id=lesson.id).all()
    assert progress.completed is False
    assert progress.completed_at is None
    assert progress.watch_time == 30

    assert client.put("/api/lessons/missing/progress", json={}, headers=headers).status_code == 404


# -- reviews & analytics ---------------------------------------------------

def test_reviews_update_course_rating(client, auth_headers, make_user, make_course):
    course = make_course()

    for rating in (5, 4, 4):
        resp = client.post(
            f"/api/courses/{course.id}/reviews",
            json={"rating": rating, "comment": "Good"},
            headers=auth_headers(make_user()),
        )
        assert resp.status_code == 201

    assert client.get(f"/api/courses/{course.id}").get_json()["rating"] == "4.33"
    assert len(client.get(f"/api/courses/{course.id}/reviews").get_json()) == 3

    bad = client.post(f"/api/courses/{course.id}/reviews", json={"rating": 6}, headers=auth_headers(make_user()))
    assert bad.status_code == 400


def test_analytics(client, auth_headers, make_user, make_course):
    owner = make_user(role="instructor")
    course = make_course(instructor=owner, price="0", duration=10)
    student = make_user()
    headers = auth_headers(student)
    client.post(f"/api/courses/{course.id}/enroll", headers=headers)
    client.put(f"/api/enrollments/{course.id}/progress", json={"progress": 100}, headers=headers)

    assert client.get("/api/analytics/user", headers=headers).get_json() == {
        "totalEnrollments": 1,
        "completedCourses": 1,
        "totalHoursLearned": 10,
    }
    assert client.get(f"/api/analytics/course/{course.id}", headers=headers).status_code == 403
    stats = client.get(f"/api/analytics/course/{course.id}", headers=auth_headers(owner)).get_json()
    assert stats == {"totalStudents": 1, "completedStudents": 1, "avgProgress": 100.0}

import pytest


@pytest.fixture
def seeded(client):
    assert client.post("/api/members", json={"member_id": 1, "name": "Ada", "age": 30}).status_code == 200
    assert client.post("/api/members", json={"member_id": 2, "name": "Alan", "age": 41}).status_code == 200
    book = {"book_id": 101, "title": "Dune", "author": "Frank Herbert", "isbn": "9780441013593"}
    assert client.post("/api/books", json=book).status_code == 200
    return client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["timestamp"] == "2024-01-01T09:00:00.000Z"


# --- Members ---
def test_create_and_get_member(client):
    response = client.post("/api/members", json={"member_id": 1, "name": "Ada", "age": 30})
    assert response.status_code == 200
    assert response.json() == {"member_id": 1, "name": "Ada", "age": 30, "has_borrowed": False}

    response = client.get("/api/members/1")
    assert response.status_code == 200
    assert response.json()["name"] == "Ada"


def test_create_member_missing_fields(client):
    response = client.post("/api/members", json={"member_id": 1, "name": "Ada"})
    assert response.status_code == 400
    assert response.json() == {"message": "member_id, name, and age are required"}


def test_create_member_too_young(client):
    response = client.post("/api/members", json={"member_id": 1, "name": "Kid", "age": 10})
    assert response.status_code == 400
    assert response.json()["message"] == "invalid age: 10, must be 12 or older"


def test_create_duplicate_member(seeded):
    response = seeded.post("/api/members", json={"member_id": 1, "name": "Again", "age": 20})
    assert response.status_code == 400
    assert response.json()["message"] == "member with id: 1 already exists"


def test_get_unknown_member(client):
    response = client.get("/api/members/5")
    assert response.status_code == 404
    assert response.json() == {"message": "member with id: 5 was not found"}


def test_list_members(seeded):
    response = seeded.get("/api/members")
    assert response.status_code == 200
    assert response.json() == {
        "members": [
            {"member_id": 1, "name": "Ada", "age": 30},
            {"member_id": 2, "name": "Alan", "age": 41},
        ]
    }


def test_update_member(seeded):
    response = seeded.put("/api/members/1", json={"age": 31})
    assert response.status_code == 200
    assert response.json() == {"member_id": 1, "name": "Ada", "age": 31, "has_borrowed": False}

    response = seeded.put("/api/members/1", json={"age": 3})
    assert response.status_code == 400

    response = seeded.put("/api/members/9", json={"name": "X"})
    assert response.status_code == 404


def test_update_unknown_member_with_bad_age_is_not_found(client):
    response = client.put("/api/members/9", json={"age": 3})
    assert response.status_code == 404
    assert response.json() == {"message": "member with id: 9 was not found"}


def test_update_member_without_fields(seeded):
    response = seeded.put("/api/members/1", json={})
    assert response.status_code == 400
    assert response.json() == {"message": "Nothing to update. Provide name and/or age."}
    assert seeded.get("/api/members/1").json()["name"] == "Ada"


def test_delete_unknown_member_and_book(client):
    response = client.delete("/api/members/9")
    assert response.status_code == 404
    assert response.json() == {"message": "member with id: 9 not found"}

    response = client.delete("/api/books/55")
    assert response.status_code == 404
    assert response.json() == {"message": "book with id: 55 not found"}


def test_delete_member(seeded):
    seeded.post("/api/borrow", json={"member_id": 1, "book_id": 101})
    response = seeded.delete("/api/members/1")
    assert response.status_code == 400
    assert "member has an active book borrowing" in response.json()["message"]

    seeded.post("/api/return", json={"member_id": 1, "book_id": 101})
    response = seeded.delete("/api/members/1")
    assert response.status_code == 200
    assert response.json() == {"message": "member with id: 1 has been deleted successfully"}
    assert seeded.get("/api/members/1").status_code == 404


# --- Books ---
def test_book_lifecycle(client):
    payload = {"book_id": 7, "title": "Emma", "author": "Jane Austen", "isbn": "9780141439587"}
    response = client.post("/api/books", json=payload)
    assert response.status_code == 200
    assert response.json() == {**payload, "is_available": True}

    assert client.get("/api/books").json() == {"books": [{**payload, "is_available": True}]}

    response = client.put("/api/books/7", json={"title": "Emma (Annotated)"})
    assert response.status_code == 200
    assert response.json()["title"] == "Emma (Annotated)"

    assert client.delete("/api/books/7").status_code == 200
    response = client.get("/api/books/7")
    assert response.status_code == 404
    assert response.json() == {"message": "book with id: 7 was not found"}


def test_add_book_missing_fields(client):
    response = client.post("/api/books", json={"book_id": 1, "title": "No Author"})
    assert response.status_code == 400
    assert response.json()["message"] == "book_id, title, author, and isbn are required"


def test_update_book_without_fields(seeded):
    response = seeded.put("/api/books/101", json={})
    assert response.status_code == 400


def test_cannot_delete_borrowed_book(seeded):
    seeded.post("/api/borrow", json={"member_id": 1, "book_id": 101})
    response = seeded.delete("/api/books/101")
    assert response.status_code == 400
    assert response.json()["message"] == "cannot delete book with id: 101, book is currently borrowed"


# --- Lending ---
def test_borrow_and_return(seeded, clock):
    response = seeded.post("/api/borrow", json={"member_id": 1, "book_id": 101})
    assert response.status_code == 200
    borrowing = response.json()
    assert borrowing["transaction_id"] == 1
    assert borrowing["member_name"] == "Ada"
    assert borrowing["book_title"] == "Dune"
    assert borrowing["borrowed_at"] == "2024-01-01T09:00:00.000Z"
    assert borrowing["due_date"] == "2024-01-15T09:00:00.000Z"
    assert borrowing["status"] == "active"
    assert borrowing["returned_at"] is None

    assert seeded.get("/api/members/1").json()["has_borrowed"] is True
    assert seeded.get("/api/books/101").json()["is_available"] is False

    clock.advance(days=3)
    response = seeded.post("/api/return", json={"member_id": 1, "book_id": 101})
    assert response.status_code == 200
    assert response.json()["status"] == "returned"
    assert response.json()["returned_at"] == "2024-01-04T09:00:00.000Z"

    assert seeded.get("/api/members/1").json()["has_borrowed"] is False
    assert seeded.get("/api/books/101").json()["is_available"] is True


@pytest.mark.parametrize(
    "payload, status, message",
    [
        ({"member_id": 9, "book_id": 101}, 404, "member with id: 9 not found"),
        ({"member_id": 1, "book_id": 999}, 404, "book with id: 999 not found"),
        ({"member_id": 1}, 400, "member_id and book_id are required"),
    ],
)
def test_borrow_rejections(seeded, payload, status, message):
    response = seeded.post("/api/borrow", json=payload)
    assert response.status_code == status
    assert response.json() == {"message": message}


def test_borrow_conflicts(seeded):
    seeded.post("/api/books", json={"book_id": 102, "title": "Emma", "author": "Austen", "isbn": "1"})
    seeded.post("/api/borrow", json={"member_id": 1, "book_id": 101})

    response = seeded.post("/api/borrow", json={"member_id": 1, "book_id": 102})
    assert response.status_code == 400
    assert response.json()["message"] == "member with id: 1 already borrowed a book"

    response = seeded.post("/api/borrow", json={"member_id": 2, "book_id": 101})
    assert response.status_code == 400
    assert response.json()["message"] == "book with id: 101 is not available"


def test_return_rejections(seeded):
    response = seeded.post("/api/return", json={"member_id": 9, "book_id": 101})
    assert response.status_code == 404

    response = seeded.post("/api/return", json={"member_id": 1, "book_id": 101})
    assert response.status_code == 400
    assert response.json()["message"] == "member with id: 1 has not borrowed book with id: 101"


def test_borrowed_and_overdue_lists(seeded, clock):
    assert seeded.get("/api/borrowed").json() == {"borrowed_books": []}
    seeded.post("/api/borrow", json={"member_id": 2, "book_id": 101})

    borrowed = seeded.get("/api/borrowed").json()["borrowed_books"]
    assert len(borrowed) == 1
    assert "status" not in borrowed[0]
    assert borrowed[0]["member_name"] == "Alan"

    assert seeded.get("/api/overdue").json() == {"overdue_books": []}
    clock.advance(days=20)
    overdue = seeded.get("/api/overdue").json()["overdue_books"]
    assert len(overdue) == 1
    assert overdue[0]["days_overdue"] == 6
    assert overdue[0]["transaction_id"] == 1


def test_history(seeded, clock):
    seeded.post("/api/borrow", json={"member_id": 1, "book_id": 101})
    clock.advance(days=1)
    seeded.post("/api/return", json={"member_id": 1, "book_id": 101})

    response = seeded.get("/api/members/1/history")
    assert response.status_code == 200
    assert response.json() == {
        "member_id": 1,
        "member_name": "Ada",
        "borrowing_history": [
            {
                "transaction_id": 1,
                "book_id": 101,
                "book_title": "Dune",
                "borrowed_at": "2024-01-01T09:00:00.000Z",
                "returned_at": "2024-01-02T09:00:00.000Z",
                "status": "returned",
            }
        ],
    }

    assert seeded.get("/api/members/77/history").status_code == 404


def test_stats(seeded):
    seeded.post("/api/borrow", json={"member_id": 1, "book_id": 101})
    stats = seeded.get("/api/stats").json()
    assert stats["active_borrowings"] == 1
    assert stats["available_books"] == 0
    assert stats["total_members"] == 2

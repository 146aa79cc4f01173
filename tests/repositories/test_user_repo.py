"""Tests for UserRepo and CarRepo lookups."""

import pytest


class TestUserRepo:
    """Read access to marketplace accounts."""

    def test_get_user_by_id(self, user_repo, sample_users):
        alice = sample_users[0]

        user = user_repo.get_user_by_id(alice.id)

        assert user.firstname == "Alice"
        assert user.display_name == "Alice Martin"

    def test_get_user_by_id_missing(self, user_repo):
        assert user_repo.get_user_by_id(999) is None

    def test_get_user_by_id_none_rejected(self, user_repo):
        with pytest.raises(ValueError, match="cannot be None"):
            user_repo.get_user_by_id(None)

    def test_user_exists(self, user_repo, sample_users):
        assert user_repo.user_exists(sample_users[2].id)
        assert not user_repo.user_exists(999)


class TestCarRepo:
    def test_get_car_by_id(self, car_repo, sample_car):
        car = car_repo.get_car_by_id(sample_car.id)

        assert car.title == "Peugeot 208 GT Line"

    def test_get_car_by_id_missing(self, car_repo):
        assert car_repo.get_car_by_id(999) is None

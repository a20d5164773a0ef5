from config import DevelopmentConfig, ProductionConfig

from campusclubs import create_app
from campusclubs.utils import get_per_page


def test_environment_configs(app):
    assert app.testing
    assert app.config["SQLALCHEMY_DATABASE_URI"] == "sqlite:///:memory:"
    assert app.config["WTF_CSRF_ENABLED"] is False
    assert app.config["LOGIN_MAX_ATTEMPTS"] == 3

    assert DevelopmentConfig.DEBUG is True
    assert ProductionConfig.SESSION_COOKIE_SECURE is True
    assert ProductionConfig.SQLALCHEMY_ENGINE_OPTIONS == {"pool_pre_ping": True}


def test_test_config_overrides_settings():
    app = create_app(
        "testing",
        test_config={"LOGIN_MAX_ATTEMPTS": 1, "MAX_ITEMS_PER_PAGE": 5},
    )
    assert app.config["LOGIN_MAX_ATTEMPTS"] == 1
    with app.test_request_context("/clubs?limit=50"):
        assert get_per_page() == 5

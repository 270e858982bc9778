import os, sys, pytest
# Ensure the backend directory is on path so 'hotelix' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from hotelix import create_app, get_db
from hotelix.cache.intervention_cache import intervention_cache
from hotelix.models.hotel import Base
# Import all model modules to ensure tables are registered before create_all
import hotelix.models.zone  # noqa: F401
import hotelix.models.intervention  # noqa: F401

@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({'DATABASE_URL': 'sqlite+pysqlite:///:memory:', 'JWT_SECRET_KEY': 'test-secret-key-for-hotelix-suite-0123456789'})
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app

@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance

@pytest.fixture()
def client(app_context):
    return app_context.test_client()

@pytest.fixture(autouse=True)
def fresh_stats_cache():
    intervention_cache.invalidate_all()
    intervention_cache.reset_counters()
    yield

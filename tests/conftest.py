import pytest

from pagescout.llm_config import LLMConfig
from pagescout.models import SelectorScheme, TargetSite
from pagescout.session import SnapshotSession


class ScriptedOracle:
    """Stand-in for ReasoningClient that replays scripted answers.

    Each entry in ``schemes`` is returned (or raised, if it is an exception)
    by successive ``generate_scheme`` calls.
    """

    def __init__(self, schemes=None, target_url='https://shop.example.com/catalog'):
        self.schemes = list(schemes or [])
        self.target_url = target_url
        self.resolve_calls: list[str] = []
        self.generate_calls: list[tuple[str, str, int]] = []

    async def resolve_target_url(self, query):
        self.resolve_calls.append(query)
        return TargetSite(url=self.target_url, reasoning='Catalog page', data_type='products')

    async def generate_scheme(self, query, structural_sample, attempt):
        self.generate_calls.append((query, structural_sample, attempt))
        answer = self.schemes.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class SnapshotFactory:
    """Session factory over fixed HTML that remembers every session it opened."""

    def __init__(self, html):
        self.html = html
        self.sessions: list[SnapshotSession] = []

    def __call__(self):
        session = SnapshotSession(self.html)
        self.sessions.append(session)
        return session


@pytest.fixture
def mock_llm_config():
    return LLMConfig(provider='groq', model_name='llama-3.3-70b-versatile', api_key='test-key', temperature=0.0)


@pytest.fixture
def product_listing_html():
    return """
    <!DOCTYPE html>
    <html>
    <head><title>Laptops - Example Shop</title></head>
    <body class="template-collection">
        <nav>
            <ul class="menu">
                <li><a href="/">Home</a></li>
                <li><a href="/laptops">Laptops</a></li>
            </ul>
        </nav>
        <main>
            <div class="grid">
                <div class="product-card">
                    <h3 class="card-title"><a href="/products/1">Aero 14</a></h3>
                    <span class="money">$999.00</span>
                    <div class="stars">4.5 out of 5</div>
                </div>
                <div class="product-card">
                    <h3 class="card-title"><a href="/products/2">Zen Book "Pro"</a></h3>
                    <span class="money">$1,299.00</span>
                    <div class="stars">4.8 out of 5</div>
                </div>
                <div class="product-card">
                    <h3 class="card-title"><a href="/products/3">Swift 3</a></h3>
                    <span class="money">$649.00</span>
                </div>
                <div class="product-card">
                    <h3 class="card-title"><a href="/products/4">ThinkBook 16</a></h3>
                    <span class="money">$879.00</span>
                    <div class="stars">4.1 out of 5</div>
                </div>
                <div class="product-card">
                    <h3 class="card-title"><a href="/products/5">Inspiron 15</a></h3>
                    <span class="money">$599.00</span>
                    <div class="stars">3.9 out of 5</div>
                </div>
            </div>
        </main>
    </body>
    </html>
    """


@pytest.fixture
def fallback_only_html():
    """Ten product tiles whose classes only match generic patterns."""
    tiles = '\n'.join(
        f"""
        <div class="tile product-{i}">
            <h2>Widget {i}</h2>
            <p class="amount">{i}.99 EUR</p>
            <span class="rating">{i % 5}/5</span>
        </div>"""
        for i in range(1, 11)
    )
    return f'<html><head><title>Widgets</title></head><body><section>{tiles}</section></body></html>'


@pytest.fixture
def product_scheme():
    return SelectorScheme(
        elements={
            'name': '.card-title a, h3',
            'price': '.money, .price',
            'rating': '.stars, .rating',
        },
        containers=['.product-card', '.product-item'],
        max_items=20,
    )


@pytest.fixture
def snapshot_factory():
    return SnapshotFactory


@pytest.fixture
def scripted_oracle():
    return ScriptedOracle


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line('markers', 'integration: marks tests as integration tests')
    config.addinivalue_line('markers', 'unit: marks tests as unit tests')


def pytest_collection_modifyitems(config, items):
    """Apply directory-based marks to collected test items."""

    for item in items:
        # Get the test file path
        if hasattr(item, 'fspath'):
            file_path = str(item.fspath)

            # Add marks based on directory
            if '/tests/integration/' in file_path:
                item.add_marker(pytest.mark.integration)
            elif '/tests/unit/' in file_path:
                item.add_marker(pytest.mark.unit)

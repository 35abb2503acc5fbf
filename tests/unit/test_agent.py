import pytest

from pagescout.agent import EXHAUSTED_MESSAGE, AdaptiveScraper, find_url
from pagescout.exceptions import NavigationError, OracleFormatError
from pagescout.models import AttemptResult, SelectorScheme


class FixedRateTester:
    """Tester stub returning preset success rates in order."""

    def __init__(self, rates, records=None):
        self.rates = list(rates)
        self.records = records or [{'name': 'Item'}]
        self.calls = 0

    async def test(self, session, scheme):
        self.calls += 1
        rate = self.rates.pop(0)
        return AttemptResult(
            scheme=scheme,
            success_rate=rate,
            containers_found=len(self.records),
            sample_records=self.records,
        )


@pytest.fixture
def weak_scheme():
    # no field belongs to a fallback family, so nothing is ever filled
    return SelectorScheme(elements={'sku': '.nope', 'color': '.nope'}, containers=['.nope'])


def test_find_url_returns_first_url():
    assert find_url('prices from https://shop.example.com/a?b=1 and http://other.com') == (
        'https://shop.example.com/a?b=1'
    )
    assert find_url('GitHub trending repositories') is None


@pytest.mark.asyncio
async def test_scenario_a_url_in_query_skips_resolution(
    scripted_oracle, snapshot_factory, product_listing_html, product_scheme
):
    oracle = scripted_oracle([product_scheme])
    factory = snapshot_factory(product_listing_html)
    scraper = AdaptiveScraper(oracle, session_factory=factory)

    result = await scraper.scrape('laptops from https://shop.example.com/laptops')

    assert oracle.resolve_calls == []
    assert result.url == 'https://shop.example.com/laptops'
    assert factory.sessions[0].navigations == ['https://shop.example.com/laptops']


@pytest.mark.asyncio
async def test_success_on_first_attempt_extracts_everything(
    scripted_oracle, snapshot_factory, product_listing_html, product_scheme
):
    oracle = scripted_oracle([product_scheme])
    factory = snapshot_factory(product_listing_html)

    result = await AdaptiveScraper(oracle, session_factory=factory).scrape('cheap laptops')

    assert result.success is True
    assert result.url == 'https://shop.example.com/catalog'
    assert oracle.resolve_calls == ['cheap laptops']
    assert result.count == 5
    assert result.data[1] == {'name': 'Zen Book "Pro"', 'price': '$1,299.00', 'rating': '4.8 out of 5'}
    assert result.ai_agent.attempts_used == 1
    assert result.ai_agent.selectors_used == product_scheme
    assert result.ai_agent.debug_info['working_container_selector'] == '.product-card'
    assert factory.sessions[0].closed is True


@pytest.mark.asyncio
async def test_full_extraction_respects_max_items(scripted_oracle, snapshot_factory, product_listing_html):
    scheme = SelectorScheme(elements={'name': '.card-title a'}, containers=['.product-card'], max_items=2)
    oracle = scripted_oracle([scheme])

    result = await AdaptiveScraper(oracle, session_factory=snapshot_factory(product_listing_html)).scrape('x')

    assert result.count == 2


@pytest.mark.asyncio
async def test_retry_attempts_receive_page_sample(
    scripted_oracle, snapshot_factory, product_listing_html, weak_scheme, product_scheme
):
    oracle = scripted_oracle([weak_scheme, product_scheme])

    result = await AdaptiveScraper(oracle, session_factory=snapshot_factory(product_listing_html)).scrape('laptops')

    assert result.success is True
    assert result.ai_agent.attempts_used == 2
    (_, first_sample, first_attempt), (_, second_sample, second_attempt) = oracle.generate_calls
    assert (first_sample, first_attempt) == ('', 1)
    assert second_attempt == 2
    assert '"matchCount": 5' in second_sample


@pytest.mark.asyncio
async def test_threshold_is_inclusive(scripted_oracle, snapshot_factory, product_listing_html, product_scheme):
    oracle = scripted_oracle([product_scheme])
    tester = FixedRateTester([0.25])
    scraper = AdaptiveScraper(oracle, tester=tester, session_factory=snapshot_factory(product_listing_html))

    result = await scraper.scrape('laptops')

    assert result.success is True
    assert result.ai_agent.attempts_used == 1
    assert result.ai_agent.final_success_rate == 0.25


@pytest.mark.asyncio
async def test_just_below_threshold_keeps_trying(
    scripted_oracle, snapshot_factory, product_listing_html, product_scheme
):
    oracle = scripted_oracle([product_scheme] * 3)
    tester = FixedRateTester([0.2499, 0.2499, 0.2499])
    scraper = AdaptiveScraper(oracle, tester=tester, session_factory=snapshot_factory(product_listing_html))

    result = await scraper.scrape('laptops')

    assert tester.calls == 3
    assert len(oracle.generate_calls) == 3
    assert result.ai_agent.attempts_used == 3
    assert result.ai_agent.final_success_rate == 0.2499


@pytest.mark.asyncio
async def test_threshold_is_configurable(scripted_oracle, snapshot_factory, product_listing_html, product_scheme):
    oracle = scripted_oracle([product_scheme])
    tester = FixedRateTester([0.5])
    scraper = AdaptiveScraper(
        oracle,
        tester=tester,
        session_factory=snapshot_factory(product_listing_html),
        success_threshold=0.4,
        max_attempts=1,
    )

    result = await scraper.scrape('laptops')

    assert result.success is True


@pytest.mark.asyncio
async def test_exhaustion_returns_best_attempt(scripted_oracle, snapshot_factory, product_listing_html):
    schemes = [
        SelectorScheme(elements={'a': '.x'}, containers=['.product-card']),
        SelectorScheme(elements={'b': '.x'}, containers=['.product-card']),
        SelectorScheme(elements={'c': '.x'}, containers=['.product-card']),
    ]
    oracle = scripted_oracle(schemes)
    tester = FixedRateTester([0.1, 0.2, 0.2])
    factory = snapshot_factory(product_listing_html)

    result = await AdaptiveScraper(oracle, tester=tester, session_factory=factory).scrape('laptops')

    assert result.success is True
    assert result.data == [{'name': 'Item'}]
    assert result.ai_agent.attempts_used == 3
    # ties keep the earliest best
    assert result.ai_agent.selectors_used == schemes[1]
    assert result.ai_agent.message == 'Found 1 items with 20.0% success rate'
    assert factory.sessions[0].closed is True


@pytest.mark.asyncio
async def test_exhaustion_without_data(scripted_oracle, snapshot_factory, product_listing_html, weak_scheme):
    oracle = scripted_oracle([weak_scheme] * 3)

    result = await AdaptiveScraper(oracle, session_factory=snapshot_factory(product_listing_html)).scrape('laptops')

    assert result.success is False
    assert result.data == []
    assert result.count == 0
    assert result.ai_agent.final_success_rate == 0.0
    assert result.ai_agent.message == EXHAUSTED_MESSAGE


@pytest.mark.asyncio
async def test_attempt_errors_are_logged_and_loop_continues(
    scripted_oracle, snapshot_factory, product_listing_html, product_scheme
):
    oracle = scripted_oracle([OracleFormatError('garbage'), RuntimeError('evaluation crashed'), product_scheme])

    result = await AdaptiveScraper(oracle, session_factory=snapshot_factory(product_listing_html)).scrape('laptops')

    assert result.success is True
    assert result.ai_agent.attempts_used == 3


@pytest.mark.asyncio
async def test_never_more_than_max_attempts_generations(scripted_oracle, snapshot_factory, product_listing_html):
    oracle = scripted_oracle([OracleFormatError('garbage')] * 10)

    result = await AdaptiveScraper(oracle, session_factory=snapshot_factory(product_listing_html)).scrape('laptops')

    assert len(oracle.generate_calls) == 3
    assert result.success is False


@pytest.mark.asyncio
async def test_url_resolution_failure_aborts(mocker, scripted_oracle, snapshot_factory, product_listing_html):
    oracle = scripted_oracle()
    mocker.patch.object(oracle, 'resolve_target_url', side_effect=OracleFormatError('no json'))
    factory = snapshot_factory(product_listing_html)

    with pytest.raises(OracleFormatError):
        await AdaptiveScraper(oracle, session_factory=factory).scrape('laptops')

    assert factory.sessions == []


@pytest.mark.asyncio
async def test_navigation_failure_aborts_and_closes_session(
    mocker, scripted_oracle, snapshot_factory, product_listing_html
):
    oracle = scripted_oracle()
    factory = snapshot_factory(product_listing_html)

    def failing_session():
        session = factory()
        mocker.patch.object(session, 'navigate', side_effect=NavigationError('https://x.com', 'timed out'))
        return session

    with pytest.raises(NavigationError):
        await AdaptiveScraper(oracle, session_factory=failing_session).scrape('https://x.com listings')

    assert factory.sessions[0].closed is True
    assert oracle.generate_calls == []


def test_max_attempts_must_be_positive(scripted_oracle):
    with pytest.raises(ValueError):
        AdaptiveScraper(scripted_oracle(), max_attempts=0)

import pytest

from pagescout.bulk import BulkExtractor
from pagescout.models import SelectorScheme


@pytest.mark.asyncio
async def test_extracts_every_record_without_truncation(snapshot_factory):
    long_name = 'Ultra Portable ' * 20
    html = '<div class="grid">' + ''.join(
        f'<div class="card"><h3>{long_name}{i}</h3><span class="price">{i}</span></div>' for i in range(40)
    ) + '</div>'
    factory = snapshot_factory(html)
    scheme = SelectorScheme(elements={'name': 'h3', 'price': '.price'}, containers=['.card'], max_items=5)

    records = await BulkExtractor(session_factory=factory).extract_all(scheme, 'https://shop.example.com/all')

    assert len(records) == 40
    assert records[39]['name'] == f'{long_name}39'.strip()
    assert factory.sessions[0].navigations == ['https://shop.example.com/all']
    assert factory.sessions[0].closed is True


@pytest.mark.asyncio
async def test_zero_records_is_not_an_error(snapshot_factory):
    factory = snapshot_factory('<html><body><p>Nothing for sale</p></body></html>')
    scheme = SelectorScheme(elements={'name': 'h3'}, containers=['.card'])

    records = await BulkExtractor(session_factory=factory).extract_all(scheme, 'https://shop.example.com/empty')

    assert records == []
    assert factory.sessions[0].closed is True


@pytest.mark.asyncio
async def test_session_closed_when_extraction_fails(mocker, snapshot_factory, product_scheme):
    factory = snapshot_factory('<p>x</p>')

    def broken_session():
        session = factory()
        mocker.patch.object(session, 'evaluate', side_effect=TimeoutError())
        return session

    with pytest.raises(TimeoutError):
        await BulkExtractor(session_factory=broken_session).extract_all(product_scheme, 'https://x.com')

    assert factory.sessions[0].closed is True

import json

from pagescout.models import AgentDiagnostics, ScrapeResult
from pagescout.outputs.json_output import format_json, save_json


def make_result():
    return ScrapeResult(
        success=True,
        data=[{'name': 'A'}],
        count=1,
        url='https://example.com',
        ai_agent=AgentDiagnostics(attempts_used=1, final_success_rate=1.0, message='ok'),
    )


def test_format_json_includes_metadata():
    data = format_json('things', make_result())

    assert data['query'] == 'things'
    assert data['url'] == 'https://example.com'
    assert data['data'] == [{'name': 'A'}]
    assert data['aiAgent']['attemptsUsed'] == 1
    assert 'extracted_at' in data


def test_save_json(tmp_path):
    path = tmp_path / 'out' / 'result.json'

    save_json(str(path), 'things', make_result())

    assert json.loads(path.read_text(encoding='utf-8'))['count'] == 1

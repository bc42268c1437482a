import asyncio
import json
import threading

import httpx

from legal_research.incidents import (
    SAMPLE_INCIDENTS,
    IncidentLoader,
    IncidentSource,
    default_sources,
    determine_category,
    determine_severity,
    extract_domains,
    incident_from_payload,
    parse_array_field,
)

INCIDENTS_CSV = (
    "incident_id,date,title,description,Alleged deployer of AI system,"
    "Alleged developer of AI system,Alleged harmed or nearly harmed parties\n"
    '1,2021-03-01,Chatbot data leak,Personal data exposed after a breach,'
    '"[""bank""]",[],"[""school students""]"\n'
    "2,2022-05-09,Minor typo,The tool made an error,[],[],[]\n"
    "3,2022-06-01,Truncated row\n"
)


def test_severity_and_category_heuristics():
    assert determine_severity("Fatal crash", "") == "critical"
    assert determine_severity("Unfair scoring", "") == "high"
    assert determine_severity("Incorrect label", "") == "medium"
    assert determine_severity("Quiet day", "") == "low"
    assert determine_category("Loan model", "showed discrimination") == "bias"
    assert determine_category("Nothing notable", "") == "other"


def test_extract_domains_and_array_fields():
    assert extract_domains(["City school district", "Regional bank"]) == ["education", "finance"]
    assert parse_array_field('["a", "b"]') == ["a", "b"]
    assert parse_array_field("[a, b]") == ["a", "b"]
    assert parse_array_field("[]") == []


def test_load_csv_maps_rows_and_skips_malformed(tmp_path):
    path = tmp_path / "incidents.csv"
    path.write_text(INCIDENTS_CSV, encoding="utf-8")

    incidents = IncidentLoader().load_csv(str(path))

    assert [incident.id for incident in incidents] == ["1", "2"]
    leak = incidents[0]
    assert leak.severity == "critical"
    assert leak.category == "privacy"
    assert leak.affected_domains == ["education", "finance"]
    assert "Privacy law compliance issues" in leak.legal_implications
    assert "Immediate review and remediation" in leak.mitigation
    assert incidents[1].severity == "medium"


def test_load_csv_summary_files_and_unknown_files(tmp_path):
    reports = tmp_path / "reports.csv"
    reports.write_text("incident_id,description\n42,Press coverage\n", encoding="utf-8")
    other = tmp_path / "misc.csv"
    other.write_text("incident_id\n1\n", encoding="utf-8")

    loader = IncidentLoader()
    [report] = loader.load_csv(str(reports))
    assert report.id == "report_42"
    assert report.title == "Report: 42"
    assert report.severity == "low"
    assert report.affected_domains == ["reporting"]
    assert loader.load_csv(str(other)) == []


def test_load_csv_reads_at_most_ten_rows(tmp_path):
    path = tmp_path / "submissions.csv"
    rows = "".join(f"{index},row {index}\n" for index in range(25))
    path.write_text("incident_id,description\n" + rows, encoding="utf-8")
    assert len(IncidentLoader().load_csv(str(path))) == 10


def test_payload_mapping_normalizes_fields():
    incident = incident_from_payload(
        {
            "incident_id": 7,
            "name": "Resume screener bias",
            "severity": "severe",
            "type": "discrimination",
            "tags": ["hr"],
            "recommendations": ["Audit models"],
            "domains": ["employment"],
        }
    )
    assert incident.id == "7"
    assert incident.title == "Resume screener bias"
    assert incident.severity == "critical"
    assert incident.category == "bias"
    assert incident.mitigation == ["Audit models"]
    assert incident.affected_domains == ["employment"]
    assert "resume" in incident.keywords


def test_load_all_falls_back_to_samples_when_sources_missing(tmp_path):
    loader = IncidentLoader(default_sources(tmp_path))
    incidents = asyncio.run(loader.load_all())
    assert [incident.id for incident in incidents] == [incident.id for incident in SAMPLE_INCIDENTS]


def test_load_all_combines_json_and_api_sources(tmp_path):
    json_path = tmp_path / "incidents.json"
    json_path.write_text(json.dumps([{"id": "j1", "title": "JSON incident"}]), encoding="utf-8")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/incidents"
        return httpx.Response(200, json=[{"id": "a1", "title": "API incident"}, {"id": "j1", "title": "dup"}])

    loader = IncidentLoader(
        [IncidentSource(name="file", format="json", path=str(json_path))],
        transport=httpx.MockTransport(handler),
    )
    loader.add_source(IncidentSource(name="api", format="api", url="https://incidents.example/incidents"))

    incidents = asyncio.run(loader.load_all())

    assert [incident.id for incident in incidents] == ["j1", "a1"]
    assert incidents[0].title == "JSON incident"
    assert [source.name for source in loader.sources()] == ["file", "api"]


def test_failing_api_source_is_skipped():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    loader = IncidentLoader(
        [IncidentSource(name="api", format="api", url="https://incidents.example/down")],
        transport=httpx.MockTransport(handler),
    )
    incidents = asyncio.run(loader.load_all())
    assert len(incidents) == len(SAMPLE_INCIDENTS)


def test_file_sources_are_read_off_the_event_loop_thread(tmp_path):
    json_path = tmp_path / "incidents.json"
    json_path.write_text(json.dumps([{"id": "j1", "title": "JSON incident"}]), encoding="utf-8")
    threads = []

    class RecordingLoader(IncidentLoader):
        def load_json(self, path):
            threads.append(threading.current_thread())
            return super().load_json(path)

        def load_csv(self, path):
            threads.append(threading.current_thread())
            return super().load_csv(path)

    loader = RecordingLoader(
        [
            IncidentSource(name="file", format="json", path=str(json_path)),
            IncidentSource(name="csv", format="csv", path=str(tmp_path / "incidents.csv")),
        ]
    )
    incidents = asyncio.run(loader.load_all())

    assert [incident.id for incident in incidents] == ["j1"]
    assert len(threads) == 2
    assert all(thread is not threading.main_thread() for thread in threads)

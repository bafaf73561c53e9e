from datetime import datetime, timezone

from inventory_agent.collectors.packages import Packages, PkgInfo
from inventory_agent.core.encoding import decode_compressed, to_json_text
from inventory_agent.core.errors import TransportError
from inventory_agent.core.publisher import format_timestamp, publish, publish_record
from inventory_agent.core.snapshot import InventorySnapshot
from inventory_agent.core.types import AttributeField, ErrorLog, FieldKind

BASE = "http://metadata/guest-attributes/guestInventory"


def fixed_clock():
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class RecordingTransport:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.writes = []

    def write(self, path, content):
        name = path.rsplit("/", 1)[-1]
        if name in self.fail_on:
            raise TransportError(f"PUT {path}: status=503 response=unavailable")
        self.writes.append((path, content))

    def names(self):
        return [p.rsplit("/", 1)[-1] for p, _ in self.writes]

    def content(self, name):
        for path, content in self.writes:
            if path == f"{BASE}/{name}":
                return content
        raise KeyError(name)


def make_snapshot(**overrides) -> InventorySnapshot:
    fields = dict(
        hostname="web-1",
        long_name="Debian GNU/Linux 12 (bookworm)",
        short_name="debian",
        version="12",
        architecture="x86_64",
        kernel_version="6.1.0-18-cloud-amd64",
        installed_packages=Packages(
            deb=[
                PkgInfo(name="bash", arch="amd64", version="5.2.15-2+b2"),
                PkgInfo(name="curl", arch="amd64", version="7.88.1-10+deb12u5"),
            ],
            pip=[PkgInfo(name="requests", arch="all", version="2.31.0")],
        ),
        package_updates=Packages(
            apt=[PkgInfo(name="curl", arch="amd64", version="7.88.1-10+deb12u6")],
        ),
    )
    fields.update(overrides)
    return InventorySnapshot(**fields)


def test_publish_healthy_transport_writes_every_attribute_in_order():
    transport = RecordingTransport()
    snapshot = make_snapshot()

    failures = publish(snapshot, BASE, transport, clock=fixed_clock)

    assert failures == []
    assert transport.names() == [
        "Timestamp",
        "Hostname",
        "LongName",
        "ShortName",
        "Version",
        "Architecture",
        "KernelVersion",
        "InstalledPackages",
        "PackageUpdates",
        "Errors",
    ]
    assert transport.content("Errors") == b"[]"
    assert transport.content("Timestamp") == b"2024-05-01T12:00:00Z"


def test_text_fields_are_written_raw():
    transport = RecordingTransport()

    publish(make_snapshot(), BASE, transport, clock=fixed_clock)

    assert transport.content("Hostname") == b"web-1"
    assert transport.content("LongName") == b"Debian GNU/Linux 12 (bookworm)"
    assert transport.content("KernelVersion") == b"6.1.0-18-cloud-amd64"


def test_empty_text_field_is_still_written():
    transport = RecordingTransport()

    publish(make_snapshot(hostname=""), BASE, transport, clock=fixed_clock)

    assert transport.content("Hostname") == b""


def test_structured_fields_decode_back_to_their_json_form():
    transport = RecordingTransport()
    snapshot = make_snapshot()

    publish(snapshot, BASE, transport, clock=fixed_clock)

    installed = decode_compressed(transport.content("InstalledPackages"))
    assert installed == {
        "deb": [
            {"Name": "bash", "Arch": "amd64", "Version": "5.2.15-2+b2"},
            {"Name": "curl", "Arch": "amd64", "Version": "7.88.1-10+deb12u5"},
        ],
        "pip": [{"Name": "requests", "Arch": "all", "Version": "2.31.0"}],
    }

    updates = decode_compressed(transport.content("PackageUpdates"))
    assert to_json_text(updates) == to_json_text(snapshot.package_updates)


def test_transport_failure_on_one_field_does_not_stop_the_walk():
    transport = RecordingTransport(fail_on={"InstalledPackages"})
    snapshot = make_snapshot()

    failures = publish(snapshot, BASE, transport, clock=fixed_clock)

    assert len(failures) == 1
    assert "InstalledPackages" in failures[0]
    assert snapshot.errors.as_list() == failures
    assert "InstalledPackages" not in transport.names()
    for name in ("Timestamp", "Hostname", "ShortName", "PackageUpdates", "Errors"):
        assert name in transport.names()

    errors_text = transport.content("Errors").decode("utf-8")
    assert errors_text.startswith('["PUT ')
    assert "InstalledPackages" in errors_text


def test_timestamp_failure_is_recorded_and_walk_continues():
    transport = RecordingTransport(fail_on={"Timestamp"})
    snapshot = make_snapshot()

    publish(snapshot, BASE, transport, clock=fixed_clock)

    assert len(snapshot.errors) == 1
    assert transport.names()[0] == "Hostname"
    assert transport.names()[-1] == "Errors"


def test_errors_write_failure_is_not_appended_to_the_log():
    transport = RecordingTransport(fail_on={"Errors"})
    snapshot = make_snapshot()

    failures = publish(snapshot, BASE, transport, clock=fixed_clock)

    assert len(failures) == 1
    assert len(snapshot.errors) == 0


def test_encoding_failure_skips_the_write_and_adds_one_error():
    transport = RecordingTransport()
    broken = Packages(deb=[object()])
    snapshot = make_snapshot(installed_packages=broken)
    snapshot.errors.append("earlier failure")

    publish(snapshot, BASE, transport, clock=fixed_clock)

    assert "InstalledPackages" not in transport.names()
    assert "PackageUpdates" in transport.names()
    assert len(snapshot.errors) == 2
    assert snapshot.errors.as_list()[0] == "earlier failure"
    assert snapshot.errors.as_list()[1].startswith("InstalledPackages: serialize:")


def test_collection_errors_are_published_in_errors_attribute():
    transport = RecordingTransport()
    snapshot = make_snapshot(hostname="", errors=ErrorLog(["permission denied"]))

    publish(snapshot, BASE, transport, clock=fixed_clock)

    assert transport.content("Errors") == b'["permission denied"]'


def test_fields_of_other_kinds_are_skipped_silently():
    transport = RecordingTransport()
    errors = ErrorLog()
    record = {"name": "x", "tags": ["a", "b"], "meta": {"k": 1}}
    fields = (
        AttributeField("Name", FieldKind.text, lambda r: r["name"]),
        AttributeField("Tags", FieldKind.list, lambda r: r["tags"]),
        AttributeField("Meta", FieldKind.structured, lambda r: r["meta"]),
    )

    failures = publish_record(record, fields, BASE, transport, errors, clock=fixed_clock)

    assert failures == []
    assert transport.names() == ["Timestamp", "Name", "Meta", "Errors"]
    assert decode_compressed(transport.content("Meta")) == {"k": 1}


def test_format_timestamp_normalizes_to_utc():
    from datetime import timedelta

    moment = datetime(2024, 5, 1, 14, 30, 5, tzinfo=timezone(timedelta(hours=2)))

    assert format_timestamp(moment) == "2024-05-01T12:30:05Z"


def test_self_referencing_structured_value_does_not_stop_the_walk():
    transport = RecordingTransport()
    errors = ErrorLog()
    looped = {}
    looped["self"] = looped
    record = {"meta": looped, "name": "web-1"}
    fields = (
        AttributeField("Meta", FieldKind.structured, lambda r: r["meta"]),
        AttributeField("Name", FieldKind.text, lambda r: r["name"]),
    )

    failures = publish_record(record, fields, BASE, transport, errors, clock=fixed_clock)

    assert transport.names() == ["Timestamp", "Name", "Errors"]
    assert len(failures) == 1
    assert failures[0].startswith("Meta: serialize:")
    assert errors.as_list() == failures

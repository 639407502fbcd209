import pytest

from ipam_sync.core.errors import InvalidFieldMapping
from ipam_sync.sync.mapping import FieldMapper, Skip, validate_mapping


class TestValidateMapping:
    def test_unknown_target_field_rejected(self):
        with pytest.raises(InvalidFieldMapping) as exc:
            validate_mapping("devices", {"name": "host", "ip_address": "ip"})
        assert exc.value.unknown_fields == ["ip_address"]
        assert exc.value.status_code == 400

    def test_blank_source_fields_dropped(self):
        mapping = validate_mapping("contacts", {"email": "mail", "phone": ""})
        assert mapping == {"email": "mail"}

    def test_non_object_mapping_rejected(self):
        with pytest.raises(InvalidFieldMapping):
            validate_mapping("libraries", ["name"])

    def test_unknown_entity_type(self):
        with pytest.raises(ValueError):
            validate_mapping("racks", {})


class TestFieldMapper:
    def test_maps_present_fields_only(self):
        mapper = FieldMapper("devices", {"name": "host", "model": "hw", "manufacturer": "vendor"})
        record = mapper.map({"host": "srv1", "hw": "R740"})
        assert record == {"name": "srv1", "model": "R740"}

    def test_natural_key_stringified_and_stripped(self):
        mapper = FieldMapper("devices", {"name": "id"})
        assert mapper.map({"id": 42}) == {"name": "42"}
        assert mapper.map({"id": "  srv2 "}) == {"name": "srv2"}

    @pytest.mark.parametrize("raw", [{"host": ""}, {"host": "   "}, {"host": None}, {}])
    def test_missing_natural_key_skips(self, raw):
        mapper = FieldMapper("devices", {"name": "host"})
        assert mapper.map(raw) == Skip("missing mandatory field (name)")

    def test_unmapped_natural_key_skips(self):
        mapper = FieldMapper("contacts", {"name": "full_name"})
        assert mapper.map({"full_name": "Ann"}) == Skip("missing mandatory field (email)")

    def test_non_object_record_skips(self):
        mapper = FieldMapper("libraries", {"name": "n"})
        assert mapper.map(["openssl"]) == Skip("record is not an object")

    def test_falsy_text_gets_field_default(self):
        mapper = FieldMapper("libraries", {
            "name": "n", "version": "v", "vendor": "vd", "product_type": "pt",
            "vulnerability_status": "vs", "license_type": "lt",
        })
        record = mapper.map({"n": "openssl", "v": "", "vd": None, "pt": "", "vs": "", "lt": ""})
        assert record["version"] == "-"
        assert record["vendor"] == "-"
        assert record["product_type"] == "software"
        assert record["vulnerability_status"] == "unknown"
        assert record["license_type"] == ""

    def test_dates_null_when_falsy(self):
        mapper = FieldMapper("libraries", {"name": "n", "install_date": "d", "last_update": "u"})
        record = mapper.map({"n": "nginx", "d": "", "u": "2024-01-02"})
        assert record["install_date"] is None
        assert record["last_update"] == "2024-01-02"

    def test_numeric_coercion(self):
        mapper = FieldMapper("libraries", {
            "name": "n", "cpu_usage": "c", "memory_usage": "m", "disk_usage": "d",
        })
        record = mapper.map({"n": "redis", "c": "12.5", "m": "512.9", "d": "n/a"})
        assert record["cpu_usage"] == 12.5
        assert record["memory_usage"] == 512
        assert record["disk_usage"] is None

        record = mapper.map({"n": "redis", "c": 0, "m": "", "d": 10})
        assert record["cpu_usage"] is None
        assert record["memory_usage"] is None
        assert record["disk_usage"] == 10

    def test_array_fields_wrap_scalars(self):
        mapper = FieldMapper("contacts", {"email": "mail", "responsibilities": "roles"})
        assert mapper.map({"mail": "a@x.io", "roles": "dba"})["responsibilities"] == ["dba"]
        assert mapper.map({"mail": "a@x.io", "roles": ["dba", "net"]})["responsibilities"] == ["dba", "net"]
        assert mapper.map({"mail": "a@x.io", "roles": ""})["responsibilities"] is None

    def test_invalid_mapping_rejected_at_construction(self):
        with pytest.raises(InvalidFieldMapping):
            FieldMapper("contacts", {"email": "mail", "salary": "pay"})

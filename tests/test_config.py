import os
import tempfile

import pytest

from gmailheadline import ConfigError, load_config, parse_config


VALID = """
[gmail]
credentials_file = "credentials.json"
token_file = "secrets/token.json"
user = "me"
retrieve_conditions = ["is:unread", "label:receipts"]
delete_conditions = ["older_than:1y"]
skip_labels = ["STARRED"]

[headline]
limit = 25
output_file = "out/headline.jsonl"
"""


class TestLoadConfig:
    """Test reading the TOML configuration file"""

    def setup_method(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "gmail-headline.toml")

    def teardown_method(self):
        self.temp_dir.cleanup()

    def write(self, text):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(text)

    def test_valid_file(self):
        self.write(VALID)
        config = load_config(self.path)

        assert config.retrieve_conditions == ("is:unread", "label:receipts")
        assert config.delete_conditions == ("older_than:1y",)
        assert config.skip_labels == ("STARRED",)
        assert config.limit == 25
        assert config.user == "me"

    def test_relative_paths_resolve_against_config_dir(self):
        self.write(VALID)
        config = load_config(self.path)

        base = os.path.dirname(os.path.abspath(self.path))
        assert config.credentials_file == os.path.join(base, "credentials.json")
        assert config.token_file == os.path.join(base, "secrets", "token.json")
        assert config.output_file == os.path.join(base, "out", "headline.jsonl")

    def test_missing_file(self):
        with pytest.raises(ConfigError, match="Unable to read config file"):
            load_config(self.path)

    def test_invalid_toml(self):
        self.write("[gmail\ncredentials_file = ")
        with pytest.raises(ConfigError, match="Unable to parse config file"):
            load_config(self.path)

    def test_config_is_frozen(self):
        self.write(VALID)
        config = load_config(self.path)
        with pytest.raises(AttributeError):
            config.limit = 5


class TestParseConfig:
    """Test validation of decoded configuration values"""

    def minimal(self, **headline):
        data = {
            "gmail": {"credentials_file": "/etc/gh/credentials.json"},
            "headline": {"output_file": "/var/lib/gh/headline.jsonl"},
        }
        data["headline"].update(headline)
        return data

    def test_defaults(self):
        config = parse_config(self.minimal())
        assert config.user == "me"
        assert config.limit == 100
        assert config.retrieve_conditions == ()
        assert config.delete_conditions == ()
        assert config.skip_labels == ()
        assert config.token_file == os.path.normpath("token.json")

    def test_absolute_paths_kept(self):
        config = parse_config(self.minimal(), base_dir="/somewhere/else")
        assert config.credentials_file == "/etc/gh/credentials.json"
        assert config.output_file == "/var/lib/gh/headline.jsonl"

    def test_zero_limit_allowed(self):
        assert parse_config(self.minimal(limit=0)).limit == 0

    @pytest.mark.parametrize("limit", [-1, 1001, "10", 2.5, True])
    def test_bad_limit(self, limit):
        with pytest.raises(ConfigError, match="headline.limit"):
            parse_config(self.minimal(limit=limit))

    def test_missing_credentials_file(self):
        data = self.minimal()
        del data["gmail"]["credentials_file"]
        with pytest.raises(ConfigError, match="gmail.credentials_file is required"):
            parse_config(data)

    def test_missing_output_file(self):
        data = self.minimal()
        del data["headline"]["output_file"]
        with pytest.raises(ConfigError, match="headline.output_file is required"):
            parse_config(data)

    def test_query_list_must_be_strings(self):
        data = self.minimal()
        data["gmail"]["retrieve_conditions"] = "is:unread"
        with pytest.raises(ConfigError, match="gmail.retrieve_conditions"):
            parse_config(data)

    def test_section_must_be_table(self):
        with pytest.raises(ConfigError, match=r"\[gmail\] must be a table"):
            parse_config({"gmail": "nope", "headline": {}})

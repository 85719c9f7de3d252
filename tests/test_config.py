from writer_api.config import OPENAI_ENDPOINT, load_settings, process_env, read_dotenv


def test_defaults_from_empty_env():
    s = load_settings({})
    assert s.openai_api_key == ""
    assert s.openai_endpoint == OPENAI_ENDPOINT
    assert s.model == "gpt-4o"
    assert s.temperature == 0.7
    assert s.max_tokens == 1000
    assert s.retry_max_attempts == 3
    assert s.allow_origins == ["*"]


def test_env_overrides_and_bad_numbers():
    s = load_settings(
        {
            "OPENAI_API_KEY": " sk-env ",
            "OPENAI_MODEL": "gpt-4o-mini",
            "LLM_MAX_TOKENS": "lots",
            "LLM_DEADLINE_SECS": "12.5",
            "RETRY_MAX_ATTEMPTS": "0",
            "ALLOW_ORIGINS": "http://a.test, http://b.test,",
        }
    )
    assert s.openai_api_key == "sk-env"
    assert s.model == "gpt-4o-mini"
    assert s.max_tokens == 1000
    assert s.deadline_secs == 12.5
    assert s.retry_max_attempts == 1
    assert s.allow_origins == ["http://a.test", "http://b.test"]


def test_public_key_variable_is_second_source():
    assert load_settings({"NEXT_PUBLIC_OPENAI_API_KEY": "sk-public"}).openai_api_key == "sk-public"
    both = {"OPENAI_API_KEY": "sk-server", "NEXT_PUBLIC_OPENAI_API_KEY": "sk-public"}
    assert load_settings(both).openai_api_key == "sk-server"
    blank = {"OPENAI_API_KEY": "  ", "NEXT_PUBLIC_OPENAI_API_KEY": "sk-public"}
    assert load_settings(blank).openai_api_key == "sk-public"


def test_log_level_is_part_of_settings():
    assert load_settings({}).log_level == "INFO"
    assert load_settings({"LOG_LEVEL": "debug"}).log_level == "DEBUG"


def test_read_dotenv_parses_lines(tmp_path):
    path = tmp_path / ".env"
    path.write_text(
        "# comment\n"
        "OPENAI_API_KEY='sk-file'\n"
        "export OPENAI_MODEL = gpt-4o-mini\n"
        "NOT A PAIR\n"
        "EMPTY=\n",
        encoding="utf-8",
    )
    assert read_dotenv(path) == {"OPENAI_API_KEY": "sk-file", "OPENAI_MODEL": "gpt-4o-mini", "EMPTY": ""}
    assert read_dotenv(tmp_path / "missing.env") == {}


def test_process_env_skips_dotenv_under_pytest(tmp_path, monkeypatch):
    path = tmp_path / ".env"
    path.write_text("WRITER_ONLY_IN_FILE=1\n", encoding="utf-8")
    monkeypatch.setenv("DOTENV_PATH", str(path))
    assert "WRITER_ONLY_IN_FILE" not in process_env()

    monkeypatch.delenv("PYTEST_CURRENT_TEST")
    monkeypatch.setenv("OPENAI_MODEL", "from-environ")
    path.write_text("WRITER_ONLY_IN_FILE=1\nOPENAI_MODEL=from-file\n", encoding="utf-8")
    env = process_env()
    assert env["WRITER_ONLY_IN_FILE"] == "1"
    assert env["OPENAI_MODEL"] == "from-environ"

from voiceround.models.messages import StartMessage
from voiceround.models.session import CONFIG_DEFAULTS, resolve_config


def test_defaults_fill_every_missing_field():
    config = resolve_config({})
    assert config.role == CONFIG_DEFAULTS["role"]
    assert config.level == "junior"
    assert config.language == "en"
    assert config.round == "technical"
    assert config.max_turns == 6
    assert config.voice == "alloy"
    assert config.candidate_name is None


def test_explicit_beats_prior_beats_default():
    prior = resolve_config({"role": "Data Engineer", "level": "senior", "language": "hi"})
    config = resolve_config({"level": "mid", "language": "  "}, prior=prior)
    assert config.level == "mid"
    assert config.role == "Data Engineer"
    assert config.language == "hi"
    assert config.round == "technical"


def test_max_turns_is_coerced_and_clamped():
    assert resolve_config({"max_turns": "3"}).max_turns == 3
    assert resolve_config({"max_turns": 0}).max_turns == 1
    assert resolve_config({"max_turns": 500}, max_turns_limit=20).max_turns == 20
    assert resolve_config({"max_turns": "lots"}).max_turns == 6


def test_start_message_aliases_map_to_config_fields():
    message = StartMessage.model_validate({
        "type": "start",
        "roleName": "Backend Engineer",
        "selectedRound": "hr",
        "maxTurns": 3,
        "candidateName": "Sam",
        "selectedLanguage": "python",
        "jobContext": "Payments team",
        "unknown": "ignored",
    })
    config = resolve_config(message.explicit_config())
    assert config.role == "Backend Engineer"
    assert config.round == "hr"
    assert config.max_turns == 3
    assert config.candidate_name == "Sam"
    assert config.focus_language == "python"
    assert config.job_context == "Payments team"


def test_infinite_max_turns_is_clamped():
    assert resolve_config({"max_turns": float("inf")}, max_turns_limit=20).max_turns == 20
    assert resolve_config({"max_turns": float("-inf")}).max_turns == 1
    assert resolve_config({"max_turns": float("nan")}).max_turns == 6

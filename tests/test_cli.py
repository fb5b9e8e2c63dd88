import httpx
import pytest

import cli
from conftest import TEST_ADDRESS, chat_completion


def test_parser_commands():
    parser = cli.build_parser()

    args = parser.parse_args(["--confirm", "infer", "--message", "hello"])

    assert args.confirm
    assert args.command == "infer"
    assert args.message == "hello"


def test_prompt_approval(monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt: "Y")
    assert cli.prompt_approval(TEST_ADDRESS)
    monkeypatch.setattr("builtins.input", lambda prompt: "")
    assert not cli.prompt_approval(TEST_ADDRESS)


@pytest.mark.asyncio
async def test_connect_reports_missing_provider(make_controller, capsys):
    controller, _ = make_controller(no_provider=True)

    assert not await cli.cli_connect(controller)

    assert "MetaMask Required" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_infer_prints_response(make_controller, capsys):
    controller, _ = make_controller(httpx.Response(200, json=chat_completion("CLI joke")))

    await cli.cli_infer(controller, None)

    out = capsys.readouterr().out
    assert f"Connected: {TEST_ADDRESS}" in out
    assert "CLI joke" in out
    assert "Inference completed successfully!" in out

import json
import unittest

from pydantic import SecretStr

from hats_agent.errors import ApiError, ParseError
from hats_agent.providers import get_adapter
from hats_agent.providers import anthropic, local, openai
from hats_agent.tools import calculator
from hats_agent.types import (
    Message,
    Provider,
    ProviderConfig,
    SamplingPolicy,
    ToolCall,
    ToolCallFunction,
)

SAMPLING = SamplingPolicy()

CONFIGS = {
    Provider.LOCAL: ProviderConfig(provider=Provider.LOCAL, model="llama3.2", endpoint="http://localhost:11434"),
    Provider.OPENAI: ProviderConfig(
        provider=Provider.OPENAI,
        model="gpt-4",
        endpoint="https://api.openai.com",
        credential=SecretStr("sk-test"),
    ),
    Provider.ANTHROPIC: ProviderConfig(
        provider=Provider.ANTHROPIC,
        model="claude-3-5-haiku-latest",
        endpoint="https://api.anthropic.com",
        credential=SecretStr("ak-test"),
    ),
}

CALL = ToolCall(
    id="call_1",
    function=ToolCallFunction(name="calculator", arguments='{"operation":"divide","a":24,"b":6}'),
)

HISTORY = [
    Message.system("You are a helpful math assistant"),
    Message.user("Calculate 24 divided by 6"),
    Message(role="assistant", tool_calls=[CALL]),
    Message.tool_result("call_1", "The result of 24 divide 6 is 4"),
]


class AdapterRegistryTests(unittest.TestCase):
    def test_every_provider_has_an_adapter(self) -> None:
        for provider in Provider:
            self.assertIs(get_adapter(provider).provider, provider)


class LocalAdapterTests(unittest.TestCase):
    def test_build_request_nests_sampling_under_options(self) -> None:
        request = local.build_request(CONFIGS[Provider.LOCAL], HISTORY[:2], None, SAMPLING)

        self.assertEqual(request.method, "POST")
        self.assertEqual(request.path, "/api/chat")
        self.assertEqual(request.headers["Content-Type"], "application/json")
        self.assertEqual(request.headers["Accept"], "application/json")
        self.assertEqual(request.body["model"], "llama3.2")
        self.assertIs(request.body["stream"], False)
        self.assertEqual(
            request.body["options"],
            {"temperature": 0.0, "top_p": 0.1, "seed": 42, "num_ctx": 4096, "num_predict": 100},
        )
        self.assertNotIn("tools", request.body)
        self.assertNotIn("Authorization", request.headers)

    def test_build_request_with_tools_raises_token_limit(self) -> None:
        request = local.build_request(CONFIGS[Provider.LOCAL], HISTORY[:2], [calculator()], SAMPLING)

        self.assertEqual(request.body["options"]["num_predict"], 1000)
        self.assertEqual(request.body["tools"][0]["type"], "function")
        self.assertEqual(request.body["tools"][0]["function"]["name"], "calculator")

    def test_tool_call_arguments_sent_as_objects(self) -> None:
        request = local.build_request(CONFIGS[Provider.LOCAL], HISTORY, None, SAMPLING)
        assistant = request.body["messages"][2]

        self.assertEqual(assistant["content"], "")
        self.assertEqual(
            assistant["tool_calls"][0]["function"]["arguments"],
            {"operation": "divide", "a": 24, "b": 6},
        )

    def test_parse_success_envelope(self) -> None:
        raw = json.dumps({"model": "llama3.2", "message": {"role": "assistant", "content": "4"}, "done": True})
        message = local.parse_response(raw)
        self.assertEqual(message.role, "assistant")
        self.assertEqual(message.content, "4")
        self.assertIsNone(message.tool_calls)

    def test_parse_tool_calls_without_ids(self) -> None:
        raw = json.dumps(
            {
                "message": {
                    "role": "assistant",
                    "content": "",
                    "tool_calls": [
                        {"function": {"name": "calculator", "arguments": {"operation": "add", "a": 2, "b": 3}}},
                        {"function": {"name": "calculator", "arguments": {"operation": "add", "a": 1, "b": 1}}},
                    ],
                }
            }
        )
        message = local.parse_response(raw)

        self.assertEqual([c.id for c in message.tool_calls], ["call_0", "call_1"])
        self.assertEqual(
            json.loads(message.tool_calls[0].function.arguments),
            {"operation": "add", "a": 2, "b": 3},
        )

    def test_parse_error_envelope(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            local.parse_response('{"error": "model \\"llama9\\" not found"}')
        self.assertIsNone(ctx.exception.status_code)
        self.assertIn("not found", ctx.exception.body)

    def test_parse_unknown_shape(self) -> None:
        with self.assertRaises(ParseError):
            local.parse_response('{"unexpected": true}')
        with self.assertRaises(ParseError):
            local.parse_response("<html>bad gateway</html>")


class OpenAIAdapterTests(unittest.TestCase):
    def test_build_request_is_flat(self) -> None:
        request = openai.build_request(CONFIGS[Provider.OPENAI], HISTORY[:2], None, SAMPLING)

        self.assertEqual(request.path, "/v1/chat/completions")
        self.assertEqual(request.headers["Authorization"], "Bearer sk-test")
        self.assertEqual(
            {k: request.body[k] for k in ("model", "temperature", "top_p", "seed", "max_tokens", "stream")},
            {"model": "gpt-4", "temperature": 0.0, "top_p": 0.1, "seed": 42, "max_tokens": 100, "stream": False},
        )
        self.assertNotIn("options", request.body)
        self.assertNotIn("tools", request.body)

    def test_history_serialization(self) -> None:
        request = openai.build_request(CONFIGS[Provider.OPENAI], HISTORY, [calculator()], SAMPLING)
        messages = request.body["messages"]

        self.assertEqual(messages[0], {"role": "system", "content": "You are a helpful math assistant"})
        self.assertEqual(
            messages[2],
            {
                "role": "assistant",
                "content": "",
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {
                            "name": "calculator",
                            "arguments": '{"operation":"divide","a":24,"b":6}',
                        },
                    }
                ],
            },
        )
        self.assertEqual(
            messages[3],
            {"role": "tool", "content": "The result of 24 divide 6 is 4", "tool_call_id": "call_1"},
        )
        self.assertEqual(request.body["max_tokens"], 1000)
        self.assertEqual(request.body["tools"][0]["function"]["parameters"]["required"], ["operation", "a", "b"])

    def test_parse_tool_call_response(self) -> None:
        raw = json.dumps(
            {
                "id": "chatcmpl-123",
                "choices": [
                    {
                        "index": 0,
                        "message": {
                            "role": "assistant",
                            "content": None,
                            "tool_calls": [
                                {
                                    "id": "call_abc",
                                    "type": "function",
                                    "function": {"name": "calculator", "arguments": "{}"},
                                }
                            ],
                        },
                        "finish_reason": "tool_calls",
                    }
                ],
            }
        )
        message = openai.parse_response(raw)

        self.assertIsNone(message.content)
        self.assertEqual(message.tool_calls[0].id, "call_abc")
        self.assertEqual(message.tool_calls[0].kind, "function")

    def test_parse_empty_choices(self) -> None:
        with self.assertRaises(ParseError):
            openai.parse_response('{"choices": []}')
        with self.assertRaises(ParseError):
            openai.parse_response('{"object": "error"}')


class AnthropicAdapterTests(unittest.TestCase):
    def test_build_request_flattens_conversation(self) -> None:
        request = anthropic.build_request(CONFIGS[Provider.ANTHROPIC], HISTORY, [calculator()], SAMPLING)

        self.assertEqual(request.path, "/v1/messages")
        self.assertEqual(request.headers["x-api-key"], "ak-test")
        self.assertEqual(request.headers["anthropic-version"], anthropic.API_VERSION)
        self.assertEqual(request.body["system"], "You are a helpful math assistant")
        self.assertEqual(
            request.body["messages"],
            [{"role": "user", "content": "Calculate 24 divided by 6\nThe result of 24 divide 6 is 4"}],
        )
        self.assertEqual(request.body["temperature"], 0.0)
        self.assertEqual(request.body["top_p"], 0.1)
        self.assertNotIn("tools", request.body)
        # tools are dropped, so the plain response cap applies
        self.assertEqual(request.body["max_tokens"], 100)

    def test_system_omitted_when_absent(self) -> None:
        request = anthropic.build_request(CONFIGS[Provider.ANTHROPIC], [Message.user("hi")], None, SAMPLING)
        self.assertNotIn("system", request.body)
        self.assertEqual(request.body["max_tokens"], 100)

    def test_parse_first_text_block(self) -> None:
        raw = json.dumps(
            {
                "id": "msg_01",
                "type": "message",
                "role": "assistant",
                "content": [{"type": "text", "text": "The result is 4"}],
                "stop_reason": "end_turn",
            }
        )
        message = anthropic.parse_response(raw)
        self.assertEqual(message.role, "assistant")
        self.assertEqual(message.content, "The result is 4")

    def test_parse_empty_content(self) -> None:
        with self.assertRaises(ParseError):
            anthropic.parse_response('{"role": "assistant", "content": []}')
        with self.assertRaises(ParseError):
            anthropic.parse_response('{"role": "assistant", "content": [{"type": "tool_use", "id": "t"}]}')


class DeterministicSamplingTests(unittest.TestCase):
    def test_sampling_fields_are_fixed_for_every_provider(self) -> None:
        conversations = [
            [Message.user("hi")],
            HISTORY,
            [Message.system("be random"), Message.user("pick a number")],
        ]
        for provider, config in CONFIGS.items():
            adapter = get_adapter(provider)
            for messages in conversations:
                for tools in (None, [calculator()]):
                    body = adapter.build_request(config, messages, tools, SAMPLING).body
                    fields = body.get("options", body)
                    with self.subTest(provider=provider, messages=len(messages), tools=bool(tools)):
                        self.assertEqual(fields["temperature"], 0.0)
                        self.assertEqual(fields["top_p"], 0.1)
                        if provider is not Provider.ANTHROPIC:
                            self.assertEqual(fields["seed"], 42)


class RoundTripTests(unittest.TestCase):
    SYNTHETIC = {
        Provider.LOCAL: {"message": {"role": "assistant", "content": "pong"}},
        Provider.OPENAI: {"choices": [{"message": {"role": "assistant", "content": "pong"}}]},
        Provider.ANTHROPIC: {"role": "assistant", "content": [{"type": "text", "text": "pong"}]},
    }

    def test_build_then_parse(self) -> None:
        for provider, config in CONFIGS.items():
            adapter = get_adapter(provider)
            adapter.build_request(config, [Message.user("ping")], None, SAMPLING)
            message = adapter.parse_response(json.dumps(self.SYNTHETIC[provider]))
            with self.subTest(provider=provider):
                self.assertEqual((message.role, message.content), ("assistant", "pong"))


if __name__ == "__main__":
    unittest.main()

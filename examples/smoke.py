import asyncio
import sys

from hats_agent.agent import process_prompt
from hats_agent.config import configure_logging, load_settings
from hats_agent.errors import AgentError


async def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    prompt = " ".join(sys.argv[1:]) or "Calculate 24 divided by 6"
    try:
        print(await process_prompt(prompt, trigger_id=0, settings=settings))
    except AgentError as e:
        # e.g. no local model server running
        print("Error:", type(e).__name__, e)


if __name__ == "__main__":
    asyncio.run(main())

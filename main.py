"""
Interactive DynamoDB agent.
Chat with an agent that can run DynamoDB operations through the gateway tool.
"""
import logging
import os
import sys
from dotenv import load_dotenv
from strands import Agent
from strands.models.anthropic import AnthropicModel

from ddb_gateway import DynamoDBPlugin, IntegrationError, load_settings
from ddb_gateway.tool import dynamodb_gateway

# Load environment variables
load_dotenv()

settings = load_settings(dotenv=False)

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a DynamoDB assistant.

You can call the dynamodb_gateway tool with any DynamoDB API operation name
(listTables, describeTable, getItem, query, scan, putItem, ...) and a JSON body
in the low-level DynamoDB request format.

Rules:
- Start with action="metadata" or action="listTables" when you don't know the tables.
- Use preview=True and confirm with the user before any write or delete.
- Prefer query over scan, and always pass a Limit on scans.
"""


def create_agent():
    """Create and configure the agent."""

    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        print("❌ Error: ANTHROPIC_API_KEY not found")
        print("   Create a .env file with your API key")
        sys.exit(1)

    model = AnthropicModel(
        client_args={"api_key": api_key},
        max_tokens=4000,
        model_id=os.getenv("ANTHROPIC_MODEL_ID", "claude-sonnet-4-20250514"),
        params={"temperature": 0.2}
    )

    return Agent(
        model=model,
        system_prompt=SYSTEM_PROMPT,
        tools=[dynamodb_gateway]
    )


def show_tables():
    """Print the tables visible to the configured datasource."""
    plugin = DynamoDBPlugin.from_settings(settings)
    try:
        tables = plugin.metadata(settings.datasource()).tables
    except IntegrationError as e:
        logger.error(f"Table listing failed: {e}")
        print(f"\n❌ {e}\n")
        return
    print(f"\n📋 Tables ({len(tables)}):")
    for table in tables:
        print(f"  - {table.name}")
    print()


def show_actions():
    """Print the actions the gateway currently allows."""
    registry = settings.registry()
    mode = "read-only" if settings.read_only else "read/write"
    print(f"\n🔧 {len(registry)} actions ({mode}):")
    for spec in registry:
        marker = "✎" if spec.mutating else " "
        print(f"  {marker} {spec.name}")
    print()


def interactive_mode(agent):
    """Run agent in interactive chat mode."""
    region = settings.region or "default region"
    mode = "read-only" if settings.read_only else "read/write"
    print(f"🤖 DynamoDB Agent [{region}, {mode}]")
    print("   Commands: 'tables', 'actions', 'metrics', 'quit'\n")

    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\n👋 Goodbye!")
            break

        if not user_input:
            continue

        command = user_input.lower()
        if command in ['quit', 'exit', 'q']:
            print("\n👋 Goodbye!")
            break
        if command == 'tables':
            show_tables()
            continue
        if command == 'actions':
            show_actions()
            continue
        if command == 'metrics':
            usage = agent.event_loop_metrics.get_summary()['accumulated_usage']
            print(f"\n📊 Tokens: {usage['inputTokens']:,} in / {usage['outputTokens']:,} out\n")
            continue

        logger.debug(f"Agent query: {user_input}")
        try:
            response = agent(user_input)
        except IntegrationError as e:
            logger.error(f"DynamoDB gateway failed: {e}")
            print(f"\n❌ {e}\n")
            continue
        except Exception as e:
            logger.exception("Agent turn failed")
            print(f"\n❌ Error: {e}\n")
            continue
        print(f"\nAgent: {response}\n")


def single_query_mode(agent, query):
    """Run agent with a single query; returns a process exit code."""
    logger.info(f"Single query against {settings.region or 'default region'}")
    try:
        response = agent(query)
    except Exception as e:
        logger.exception("Single query failed")
        print(f"❌ Error: {e}")
        return 1
    print(f"{response}\n")
    return 0


def main():
    """Main entry point."""

    if len(sys.argv) > 1 and sys.argv[1] in ['-h', '--help']:
        print("DynamoDB Agent\n")
        print("Usage:")
        print("  python main.py              # Interactive mode")
        print("  python main.py 'query'      # Single query")
        print("  python main.py --tables     # List tables without the agent")
        print("  python main.py --help       # Show this help")
        print("\nConfiguration: DDB_GATEWAY_* environment variables (see ddb_gateway.config)")
        return 0

    if len(sys.argv) > 1 and sys.argv[1] == '--tables':
        show_tables()
        return 0

    try:
        agent = create_agent()
    except Exception as e:
        print(f"❌ Failed to create agent: {e}")
        return 1

    if len(sys.argv) > 1:
        return single_query_mode(agent, ' '.join(sys.argv[1:]))
    interactive_mode(agent)
    return 0


if __name__ == "__main__":
    sys.exit(main())

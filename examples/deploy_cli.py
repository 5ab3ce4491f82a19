import asyncio
from enum import Enum

from argchain import ArgParser, CommandNode
from argchain.utils import setup_logging

setup_logging()


class Strategy(Enum):
    """Rollout strategies."""

    ROLLING = "rolling"
    BLUE_GREEN = "blue-green"

    def __str__(self):
        return self.value


def show_status(ctx) -> str:
    print(f"Status for {ctx.parent_args['region']}: all services healthy")
    return "ok"


async def rollout(ctx) -> str:
    args = ctx.args
    print(f"Rolling out {args['service']} to {args['region']} ({args['strategy']})")
    for tag in args["tag"]:
        print(f"  tag: {tag}")
    await asyncio.sleep(0.2)
    return "done"


parser = ArgParser("deployctl", "Deploy services to the fleet.")
parser.add_flags(
    [
        {
            "name": "region",
            "options": ["-r", "--region"],
            "env": ["DEPLOY_REGION", "AWS_REGION"],
            "default": "us-east-1",
            "description": "Target region",
        },
        {
            "name": "verbose",
            "options": ["-v", "--verbose"],
            "flag_only": True,
            "description": "Verbose output",
        },
    ]
)
parser.add_subcommand(CommandNode("status", "Show fleet status").set_handler(show_status))
parser.add_subcommand(
    CommandNode("rollout", "Start a rollout", inherit_parent_flags=True)
    .add_flags(
        [
            {
                "name": "service",
                "options": ["--service"],
                "positional": 1,
                "mandatory": True,
            },
            {
                "name": "strategy",
                "options": ["--strategy"],
                "type": Strategy,
                "default": Strategy.ROLLING,
            },
            {"name": "tag", "options": ["-t", "--tag"], "allow_multiple": True},
            {
                "name": "token",
                "options": ["--token"],
                "env": "DEPLOY_TOKEN",
                "mandatory": lambda args: (args.get("region") or "").startswith("eu-"),
            },
        ]
    )
    .set_handler(rollout)
)

if __name__ == "__main__":
    result = asyncio.run(parser.parse_async())
    if result.handler_result is not None:
        print(f"Result: {result.handler_result}")

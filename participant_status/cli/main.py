#!/usr/bin/env python3
"""
参与者状态查询工具

示例:
    participant-status status alice
    participant-status list --status READY --page 1 --limit 20
    participant-status --json status alice
"""

import argparse
import asyncio
import json
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from participant_status.analyzers.reducer import summarize_components
from participant_status.checker import StatusChecker
from participant_status.collectors.models import (
    ParticipantListResponse,
    ParticipantStatusResponse,
    ProvisioningStatus,
)
from participant_status.config import StatusConfig
from participant_status.utils.errors import StatusCheckError, is_backing_unavailable_error
from participant_status.utils.retry import retry_on_backing_unavailable


console = Console()

STATUS_STYLES = {
    ProvisioningStatus.READY: "green",
    ProvisioningStatus.PROVISIONING: "cyan",
    ProvisioningStatus.DEGRADED: "yellow",
    ProvisioningStatus.FAILED: "red",
    ProvisioningStatus.DELETING: "magenta",
    ProvisioningStatus.NOT_FOUND: "dim",
}


def _styled(status: ProvisioningStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.value}[/{style}]"


def print_status(response: ParticipantStatusResponse):
    """打印单个参与者状态"""
    console.print()
    console.print(Panel(
        f"[bold]{response.participant_name}[/bold]  {_styled(response.status)}",
        expand=False,
    ))
    console.print(f"[bold]说明:[/bold] {response.message}")
    console.print(f"[dim]更新时间: {response.last_updated.isoformat()}[/dim]")
    console.print()

    if response.components:
        table = Table(title="组件")
        table.add_column("名称")
        table.add_column("状态")
        table.add_column("副本 (ready/current/desired)")
        table.add_column("说明")

        for name in sorted(response.components):
            component = response.components[name]
            replicas = component.replicas
            table.add_row(
                name,
                component.status,
                f"{replicas.ready}/{replicas.current}/{replicas.desired}",
                component.message,
            )
        console.print(table)

        counts = summarize_components(response.components)
        console.print("[dim]" + ", ".join(f"{k}: {v}" for k, v in sorted(counts.items())) + "[/dim]")
        console.print()

    if response.events:
        console.print("[bold]最近事件:[/bold]")
        for event in response.events:
            console.print(f"  [dim]{event.timestamp.isoformat()}[/dim] {event.type}: {event.message}")
        console.print()


def print_list(result: ParticipantListResponse, page: int, limit: int):
    """打印参与者列表"""
    table = Table(title=f"参与者 (第 {page} 页, 每页 {limit} 条, 共 {result.total} 个)")
    table.add_column("名称")
    table.add_column("状态")
    table.add_column("更新时间")

    for item in result.items:
        table.add_row(item.participant_name, _styled(item.status), item.last_updated.isoformat())

    console.print()
    console.print(table)
    console.print()


async def run(args: argparse.Namespace) -> int:
    """执行子命令"""
    if args.config:
        config = StatusConfig.from_yaml(args.config)
    else:
        config = StatusConfig.from_env()

    if args.context:
        config = config.model_copy(update={"kubectl_context": args.context})

    checker = StatusChecker(config=config)
    retrying = retry_on_backing_unavailable(max_attempts=args.retries)

    try:
        if args.command == "status":
            response = await retrying(checker.get_status)(args.name, timeout=args.timeout)
            if args.json:
                print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
            else:
                print_status(response)
        else:
            items, total = await retrying(checker.list_participants)(
                status_filter=args.status,
                page=args.page,
                limit=args.limit,
                timeout=args.timeout,
            )
            result = ParticipantListResponse(items=items, total=total)
            if args.json:
                print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
            else:
                print_list(result, args.page, args.limit)
    finally:
        checker.close()

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="participant-status",
        description="查询参与者部署状态",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  %(prog)s status alice
  %(prog)s list --status READY
  %(prog)s --json list --page 2 --limit 10
        """
    )

    parser.add_argument("--context", help="kubeconfig context")
    parser.add_argument("--config", help="YAML 配置文件 (默认读取环境变量)")
    parser.add_argument("--timeout", type=float, help="截止时间 (秒)")
    parser.add_argument("--retries", type=int, default=3, help="集群不可达时的最大尝试次数")
    parser.add_argument("--json", action="store_true", help="输出 JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")

    subparsers = parser.add_subparsers(dest="command", required=True)

    status_parser = subparsers.add_parser("status", help="查询单个参与者")
    status_parser.add_argument("name", help="参与者名称")

    list_parser = subparsers.add_parser("list", help="列出参与者")
    list_parser.add_argument(
        "--status",
        choices=[s.value for s in ProvisioningStatus],
        help="按状态过滤"
    )
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--limit", type=int, default=10)

    return parser


def main():
    """CLI 主入口"""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    try:
        exit_code = asyncio.run(run(args))
    except StatusCheckError as e:
        if is_backing_unavailable_error(e):
            console.print(f"[red]❌ 集群不可达: {e}[/red]")
        else:
            console.print(f"[red]❌ 查询失败: {e}[/red]")
        exit_code = 1
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  用户中断[/yellow]")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

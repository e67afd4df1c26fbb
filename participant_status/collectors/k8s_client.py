"""
Kubernetes 客户端 - 基于 kubectl

所有调用均为只读 (get), 输出统一为 -o json。
每次调用带独立超时, 超时或被取消时子进程会被终止。
"""

import asyncio
import json
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class KubectlWrapper:
    """kubectl 封装"""

    def __init__(self, context: Optional[str] = None, timeout: float = 10):
        """
        Args:
            context: kubeconfig context (默认使用 current-context)
            timeout: 单次调用超时 (秒, 默认 10)
        """
        self.context = context
        self.timeout = timeout
        self.kubectl_cmd = self._build_kubectl_cmd()

    def _build_kubectl_cmd(self) -> List[str]:
        """构建 kubectl 命令前缀"""
        cmd = ["kubectl"]
        if self.context:
            cmd.extend(["--context", self.context])
        return cmd

    async def run(self, cmd: List[str], timeout: Optional[float] = None) -> Dict:
        """
        执行命令并解析结果

        Args:
            cmd: 命令列表
            timeout: 超时时间 (秒, 默认使用实例配置)

        Returns:
            {"success": bool, "data": any, "error": str, "cmd": str}
        """
        timeout = timeout or self.timeout
        cmd_str = " ".join(cmd)
        logger.debug(f"执行: {cmd_str}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            return {"success": False, "error": str(e), "cmd": cmd_str}

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await _terminate(proc)
            return {
                "success": False,
                "error": f"Command timed out after {timeout}s",
                "cmd": cmd_str,
            }
        except asyncio.CancelledError:
            # 外层截止时间到期
            await _terminate(proc)
            raise

        if proc.returncode != 0:
            return {
                "success": False,
                "error": stderr.decode(errors="replace").strip(),
                "cmd": cmd_str,
            }

        output = stdout.decode(errors="replace")
        try:
            data = json.loads(output)
        except json.JSONDecodeError:
            return {
                "success": False,
                "error": f"Invalid JSON output: {output[:200]}",
                "cmd": cmd_str,
            }

        return {"success": True, "data": data}

    # === 标准 K8s 资源操作 ===

    async def get_namespace(self, name: str) -> Dict:
        """获取单个 Namespace"""
        cmd = self.kubectl_cmd + ["get", "namespace", name, "-o", "json"]
        return await self.run(cmd)

    async def get_namespaces(self) -> Dict:
        """获取所有 Namespace"""
        cmd = self.kubectl_cmd + ["get", "namespaces", "-o", "json"]
        return await self.run(cmd)

    async def get_resource(self, kind: str, name: str, namespace: str) -> Dict:
        """获取命名空间内的单个资源 (deployment / statefulset)"""
        cmd = self.kubectl_cmd + [
            "get", kind, name,
            "-n", namespace,
            "-o", "json"
        ]
        return await self.run(cmd)

    async def get_resources(self, kind: str, namespace: str) -> Dict:
        """获取命名空间内某类资源列表"""
        cmd = self.kubectl_cmd + [
            "get", kind,
            "-n", namespace,
            "-o", "json"
        ]
        return await self.run(cmd)

    async def get_events(self, namespace: str) -> Dict:
        """获取事件"""
        cmd = self.kubectl_cmd + ["get", "events", "-n", namespace, "-o", "json"]
        return await self.run(cmd)


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """终止子进程并回收"""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()

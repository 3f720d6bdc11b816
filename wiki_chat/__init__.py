"""wiki_chat 顶层包。

一个把 Wikipedia 文章作为参考资料、经由服务端中继调用 LLM 回答问题的演示系统，
包括配置加载、领域模型、Provider 适配、SSE 中继服务、Wikipedia 检索
以及驱动整个问答流程的 Orchestrator。
"""

from wiki_chat.flows import QueryOrchestrator

__all__ = ["QueryOrchestrator"]

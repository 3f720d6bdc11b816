"""领域层模型。

包含：
- models: 统一的 ChatMessage / ChatRequest / ChatResult 模型。
- articles: Article 与知识库条目。
- events: 回答流事件 TextDelta / Done / Error。
- conversation: 会话消息与查询状态机。
- exceptions: 业务异常类型定义。
"""

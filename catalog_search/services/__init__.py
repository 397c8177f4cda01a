"""服务层

- indexing: 祖先解析、属性过滤、修饰器管道与文档增强序列化
- search: Elasticsearch 客户端、内容索引器与搜索服务
"""

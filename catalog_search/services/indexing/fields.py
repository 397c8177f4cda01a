"""索引文档中由修饰器写入的字段名"""

ANCESTORS = "search_ancestors"
SEARCH_TYPES = "search_types"
SEARCH_DESCRIPTION = "search_description"
MEDIA_CONTENTS = "search_media_contents"

# ingest attachment 管道提取后的字段
MEDIA_CONTENTS_TEXT = f"{MEDIA_CONTENTS}.content"
MEDIA_CONTENTS_TYPE = f"{MEDIA_CONTENTS}.content_type"

# 文本检索默认字段
ANALYZED_FIELDS = "*.analyzed"

# 内置修饰器写入的字段，内容模型上的同名属性不写入基础文档
MODIFIER_FIELDS = (ANCESTORS, SEARCH_TYPES, SEARCH_DESCRIPTION, MEDIA_CONTENTS)

"""
掷骰相关常量
解析校验与掷骰逻辑使用的所有数值边界集中在此
"""

# 骰子数量
MIN_DICE_QUANTITY = 1
MAX_DICE_QUANTITY = 100

# 骰子面数
MIN_DICE_SIDES = 2
MAX_DICE_SIDES = 1000

# 一次掷骰 (重复展开后) 允许的骰子组上限，纯数字修正不计入
MAX_DICE_GROUPS = 100

# 一次掷骰 (重复展开后) 允许的表达式上限，纯修正表达式也计入
MAX_EXPRESSIONS = 100

# 单颗骰子的最大抽取次数 (含首次)，爆骰统计分布依赖此值，不要改动
MAX_DRAWS_PER_DIE = 10

# 输入长度
MAX_RAW_EXPRESSION_LEN = 1000

# 默认值
DEFAULT_DICE_SIDES = 6
DEFAULT_TRAIT_DIE_SIDES = 4
DEFAULT_WILD_DIE_SIDES = 6
DEFAULT_TRAIT_TARGET_NUMBER = 4
DEFAULT_TRAIT_TARGET_HIGHEST = 1

# 属性骰 / 百搭骰
MAX_TRAIT_DIE_SIDES = 100
MAX_WILD_DIE_SIDES = 100
VALID_TRAIT_DICE_SIDES = (4, 6, 8, 10, 12, 20, 100)

# 判定规则
RAISE_THRESHOLD = 4  # 超出目标值多少算“加码成功”
MIN_CRITICAL_FAILURE_DICE = 2  # 单颗骰子永远不算大失败

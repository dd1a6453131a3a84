"""CLI 入口模块 -- python -m reviewengine.core <command>

支持的命令：
  init-db     初始化数据库表结构
  statistics  按状态输出任务数量
"""

import asyncio
import sys

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m reviewengine.core <command>")
        print("命令:")
        print("  init-db     初始化数据库表结构")
        print("  statistics  按状态输出任务数量")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "statistics":
        asyncio.run(print_statistics())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, statistics")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库文件与表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def print_statistics() -> None:
    """输出各状态任务数量"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        counts = await store_group.task_store.count_by_status()
    finally:
        await store_group.conn.close()

    for status, count in counts.items():
        print(f"{status:<10} {count}")
    print(f"{'TOTAL':<10} {sum(counts.values())}")


if __name__ == "__main__":
    main()

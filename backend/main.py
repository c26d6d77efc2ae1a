from __future__ import annotations

import json
import logging
import sys

from backend.app.service import PortfolioInsightService


def main() -> None:
    """本地演示入口：快速验证个股分析主链路是否可用。"""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    code = sys.argv[1] if len(sys.argv) > 1 else "600519"
    service = PortfolioInsightService()
    result = service.analyze(code)
    print(json.dumps(result, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()

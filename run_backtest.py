"""
백테스트 실행 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml의 기간/유니버스 사용)
    python run_backtest.py

    # 기간 지정
    python run_backtest.py --start 2026-02-02 --end 2026-02-27

    # 파라미터 오버라이드
    python run_backtest.py -p short_window=10 -p long_window=30 -p max_positions=3

    # 일부 종목만
    python run_backtest.py --code 600519 --code 000858

    # JSON으로 결과 출력 (대시보드 연동용)
    python run_backtest.py --json

    # 관심종목 스냅샷 (당일 등락률 기반 시그널)
    python run_backtest.py --snapshot 2026-02-27

    # 등록된 전략 목록 확인
    python run_backtest.py --list
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path

from quant_engine.backtest.engine import run_backtest
from quant_engine.backtest.report import BacktestResult
from quant_engine.core.universe import filter_universe
from quant_engine.strategies import list_strategies, strategy_defaults
from quant_engine.strategies.snapshot import build_watchlist, snapshot_signals, summarize_watchlist
from quant_engine.utils.config import Config
from quant_engine.utils.logger import setup_logger

logger = logging.getLogger("quant_engine")


def parse_param(param_str: str) -> tuple[str, object]:
    """'key=value' 문자열을 파싱하여 (key, value) 반환. 숫자면 자동 변환."""
    key, _, value = param_str.partition("=")
    key = key.strip()
    value = value.strip()

    # 숫자 자동 변환
    try:
        if "." in value:
            return key, float(value)
        return key, int(value)
    except ValueError:
        return key, value


def print_result(result: BacktestResult) -> None:
    """백테스트 결과 출력."""
    print(result.summary())

    sells = [t for t in result.trades if t.action.value == "sell"]
    if sells:
        print("\n최근 매도 거래 (최대 5건):")
        for t in sells[-5:]:
            profit_str = f"+{t.profit:,.2f}" if t.profit > 0 else f"{t.profit:,.2f}"
            print(f"  [{t.timestamp}] {t.code} {t.display_name} {t.shares}주 @ ¥{t.price:,.2f} -> {profit_str} ({t.reason})")

    if result.open_positions:
        print("\n보유 종목 (마지막 종가 평가):")
        for p in result.open_positions:
            print(
                f"  {p.code} {p.display_name} {p.shares}주 "
                f"매수가 ¥{p.cost_basis:,.2f} / 현재가 ¥{p.last_price:,.2f} "
                f"평가손익 {p.unrealized_profit:+,.2f}"
            )


def run_snapshot(config: Config, as_of: date, as_json: bool) -> None:
    """관심종목 스냅샷 출력."""
    quotes = build_watchlist(config.universe, as_of, rsi_period=config.strategy.rsi_period)
    signals = snapshot_signals(
        quotes,
        buy_change_pct=config.strategy.snapshot_buy_change_pct,
        sell_change_pct=config.strategy.snapshot_sell_change_pct,
    )
    summary = summarize_watchlist(quotes)

    if as_json:
        print(json.dumps({
            "update_time": as_of.isoformat(),
            "stocks": [q.to_dict() for q in quotes],
            "buy_signals": [q.to_dict() for q in signals.buy_candidates],
            "sell_signals": [q.to_dict() for q in signals.sell_candidates],
        }, ensure_ascii=False, indent=2, allow_nan=False))
        return

    print(f"\n[관심종목 {as_of}] {summary.total}종목 "
          f"상승 {summary.up} / 하락 {summary.down} / 보합 {summary.flat}, "
          f"평균 {summary.avg_change_pct:+.2f}%")
    for q in quotes:
        print(f"  {q.code} {q.name:<6} ¥{q.price:>9,.2f} {q.change_pct:+6.2f}%  RSI {q.rsi:5.1f}")
    print(f"\n매수 후보: {', '.join(q.code for q in signals.buy_candidates) or '없음'}")
    print(f"매도 후보: {', '.join(q.code for q in signals.sell_candidates) or '없음'}")


def main():
    parser = argparse.ArgumentParser(description="MA 교차 + RSI 백테스트 실행")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--start", type=str, default=None, help="시작일 (YYYY-MM-DD)")
    parser.add_argument("--end", type=str, default=None, help="종료일 (YYYY-MM-DD)")
    parser.add_argument("-p", "--param", action="append", default=[], help="파라미터 오버라이드 (예: -p long_window=30)")
    parser.add_argument("--code", action="append", default=[], help="대상 종목 코드 (여러 번 지정 가능)")
    parser.add_argument("--snapshot", nargs="?", const="", default=None, metavar="DATE", help="관심종목 스냅샷 (기본: 종료일)")
    parser.add_argument("--json", action="store_true", help="JSON으로 출력")
    parser.add_argument("--list", action="store_true", help="등록된 전략 목록 출력")
    args = parser.parse_args()

    # 전략 목록 출력
    if args.list:
        print("등록된 전략:")
        for name in list_strategies():
            params = ", ".join(f"{k}={v}" for k, v in strategy_defaults(name).items())
            print(f"  - {name} ({params})")
        return

    # 설정 로드
    config_path = Path(args.config)
    if config_path.exists():
        config = Config.from_yaml(config_path)
    else:
        print(f"설정 파일 없음: {config_path}, 기본값 사용")
        config = Config()

    overrides = dict(parse_param(p) for p in args.param)
    if args.start:
        overrides["start_date"] = args.start
    if args.end:
        overrides["end_date"] = args.end
    if overrides:
        config = config.with_overrides(**overrides)

    # 로거 (--json이면 stdout은 결과 전용, 로그는 stderr)
    setup_logger(
        level=config.log_level,
        log_dir=config.log_dir,
        stream=sys.stderr if args.json else sys.stdout,
    )

    universe = config.universe
    if args.code:
        universe = filter_universe(universe, args.code)
        if not universe:
            print(f"오류: 유니버스에 없는 종목 코드: {args.code}")
            return

    # ─── 스냅샷 모드 ─────────────────────────────────────────────────────
    if args.snapshot is not None:
        as_of = date.fromisoformat(args.snapshot) if args.snapshot else config.backtest.end
        run_snapshot(replace(config, universe=universe), as_of, args.json)
        return

    # ─── 백테스트 모드 ───────────────────────────────────────────────────
    logger.info(f"전략: {config.strategy.name}, 종목 {len(universe)}개")
    result = run_backtest(
        universe,
        config.backtest.start,
        config.backtest.end,
        config=config.backtest,
        strategy_config=config.strategy,
    )

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2, allow_nan=False))
    else:
        print_result(result)


if __name__ == "__main__":
    main()

"""
=============================================================================
퀀트 대시보드 백테스트 엔진 (Quant Engine)
=============================================================================

[ 시스템 전체 구조 ]

    run_backtest.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드 (frozen dataclass)
         ├── utils/logger.py        ← 로깅
         │
         ├── data/price_generator.py ← 시드 기반 합성 종가 (결정적)
         ├── data/indicators.py      ← SMA(5/20), RSI(14)
         │
         ├── strategies/             ← 매매 전략 (시그널 생성)
         │     ├── ma_cross_rsi.py   ← 골든/데드크로스 + RSI 필터
         │     └── snapshot.py       ← 당일 등락률 기반 관심종목 시그널
         │
         └── backtest/engine.py      ← 백테스트 실행 엔진
               │
               ├── data/portfolio.py    ← 현금/포지션/거래기록 관리
               └── backtest/report.py   ← 결과 조립 (+ metrics.py 성과 지표)


[ 핵심 추상 클래스 (core/) ]

    core/data_provider.py    → data/price_generator.py::SyntheticPriceProvider
    core/trading_strategy.py → strategies/ma_cross_rsi.py::MACrossRSIStrategy


[ 데이터 흐름 ]

    1. config.yaml에서 기간/자금/전략 파라미터/유니버스 로드
    2. DataProvider가 종목별 종가 시계열 제공
    3. compute_indicators()가 날짜별 IndicatorFrame 생성
    4. BacktestEngine이 (전일, 당일) 프레임으로 전략 시그널을 받아 Portfolio에 매매 반영
    5. assemble_report()가 거래기록/일별 평가/잔여 포지션을 BacktestResult로 묶음
"""

__version__ = "0.1.0"

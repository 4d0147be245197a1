"""
Edge Trader

This package contains two independent trading loops sharing one engine:

1. SPOT SCALPER (edgetrader.spot)
   - Entry point: python -m edgetrader.main spot
   - Polls 15-minute BTC/USD candles from Kraken
   - Scores EMA / RSI / MACD / Bollinger signals
   - Paper trades a single position with stop loss and take profit

2. PREDICTION MARKET SCANNER (edgetrader.prediction)
   - Entry point: python -m edgetrader.main scanner
   - Ranks open Kalshi markets, asks an LLM for a probability estimate
   - Sizes bets with half-Kelly and places maker-then-taker orders
   - Every exchange request is RSA-PSS signed

Key Modules:
- edgetrader.indicators: Technical indicator series
- edgetrader.signals: Rule-based signal scoring
- edgetrader.spot: Position state machine and spot trading cycle
- edgetrader.prediction: Market scanner, estimate parser, scan cycle
- edgetrader.risk: Kelly position sizing
- edgetrader.execution: Limit-then-market order execution
- edgetrader.clients: Kraken, Kalshi and Anthropic HTTP clients
"""

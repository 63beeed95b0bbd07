"""週次配分エディタの呼び出し側モジュール（編集セッション、メトリクス）。"""

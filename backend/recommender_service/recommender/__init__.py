"""
Core logic cho training-window synchronization.

Cấu trúc:
- time_codec.py: parse timestamp -> epoch milliseconds
- cutoff_state.py: cutoff hiện tại của process
- consensus.py: thống nhất cutoff với các peers
- record_filter.py: lọc orders / order items theo cutoff
- sync_driver.py: fetch -> consensus -> filter -> train
- popularity_trainer.py: model đơn giản dùng dữ liệu đã lọc
"""

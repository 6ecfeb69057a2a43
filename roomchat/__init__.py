"""
roomchat
~~~~~~~~

基于 WebSocket 的多房间实时文字聊天服务。
"""

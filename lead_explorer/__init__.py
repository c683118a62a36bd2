"""Lead Explorer: lead submission, review and status pipeline"""

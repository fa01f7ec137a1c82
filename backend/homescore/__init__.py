# HomeScore web service
